"""Exception hierarchy.

All exceptions are terminal for the operation that raised them.
Catch the base classes if you do not care about the exact failure.
"""


class OrderDeployerException(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(OrderDeployerException):
    """The order document or the deployment section is broken."""


class BindingError(OrderDeployerException):
    """A field binding or a deposit token reference is not known."""


class CodecError(OrderDeployerException):
    """Serialised session state cannot be restored."""


class RpcError(OrderDeployerException):
    """JSON-RPC read failed."""


class EncodingError(OrderDeployerException):
    """Amount cannot be expressed in the token native units."""
