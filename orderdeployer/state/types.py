"""Type aliases for state data structures."""

from decimal import Decimal
from typing import TypeAlias


#: Raw Ethereum address as a string
#:
#: - lowercase
#:
JSONHexAddress: TypeAlias = str

#: Name of a configurable field in the gui section, e.g. ``max-spread``
BindingId: TypeAlias = str

#: Token key in the ``tokens`` section of the order document, e.g. ``usdc``.
#:
#: Not an address.
#:
TokenKey: TypeAlias = str

#: Human readable decimal amount as the user typed it, e.g. ``"50.6"``
HumanAmount: TypeAlias = str

#: Token amount in decimal units
TokenAmount: TypeAlias = Decimal

#: Token amount in the smallest units, e.g. ``2000 * 10**6`` for 2000 USDC
NativeAmount: TypeAlias = int

#: Vault id in the orderbook
VaultId: TypeAlias = int
