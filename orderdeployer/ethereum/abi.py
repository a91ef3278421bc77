"""Contract function ABI.

We only need a handful of functions, so we describe them by their
Solidity signatures instead of loading full ABI files.

- ERC-20 ``approve`` and ``allowance``

- Orderbook ``deposit2`` and ``addOrder2``

- Expression deployer ``iInterpreter``, ``iStore``, ``iParser``
  and parser ``parse2``

- Multicall3 ``aggregate3``
"""
from dataclasses import dataclass

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector


#: Struct EvaluableV3: interpreter, store, bytecode
EVALUABLE_V3 = "(address,address,bytes)"

#: Struct SignedContextV1: signer, context, signature
SIGNED_CONTEXT_V1 = "(address,uint256[],bytes)"

#: Struct TaskV1: evaluable, signed context
TASK_V1 = f"({EVALUABLE_V3},{SIGNED_CONTEXT_V1}[])"

#: Struct IO: token, decimals, vault id
IO = "(address,uint8,uint256)"

#: Struct OrderConfigV3: evaluable, valid inputs, valid outputs, nonce, secret, meta
ORDER_CONFIG_V3 = f"({EVALUABLE_V3},{IO}[],{IO}[],bytes32,bytes32,bytes)"

#: Struct Multicall3.Call3: target, allow failure, calldata
CALL3 = "(address,bool,bytes)"


class UnknownFunction(Exception):
    """Calldata selector does not match any function we know."""


@dataclass(frozen=True)
class FunctionSignature:
    """A contract function by its name and argument types."""

    name: str

    arg_types: tuple[str, ...] = ()

    #: Return types, for decoding ``eth_call`` results
    return_types: tuple[str, ...] = ()

    def __str__(self):
        return self.signature

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.arg_types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, *args) -> bytes:
        """Encode calldata: 4 bytes selector followed by ABI encoded arguments."""
        assert len(args) == len(self.arg_types), f"{self.name}() takes {len(self.arg_types)} arguments, got {len(args)}"
        return self.selector + encode(list(self.arg_types), list(args))

    def decode_args(self, data: bytes) -> tuple:
        """Decode arguments of calldata of this function."""
        if data[:4] != self.selector:
            raise UnknownFunction(f"Selector 0x{data[:4].hex()} is not {self.signature}")
        return decode(list(self.arg_types), data[4:])

    def decode_result(self, data: bytes) -> tuple:
        return decode(list(self.return_types), data)


APPROVE = FunctionSignature("approve", ("address", "uint256"), ("bool",))

ALLOWANCE = FunctionSignature("allowance", ("address", "address"), ("uint256",))

DEPOSIT2 = FunctionSignature("deposit2", ("address", "uint256", "uint256", f"{TASK_V1}[]"))

ADD_ORDER2 = FunctionSignature("addOrder2", (ORDER_CONFIG_V3, f"{TASK_V1}[]"), ("bool",))

AGGREGATE3 = FunctionSignature("aggregate3", (f"{CALL3}[]",), ("(bool,bytes)[]",))

I_INTERPRETER = FunctionSignature("iInterpreter", (), ("address",))

I_STORE = FunctionSignature("iStore", (), ("address",))

I_PARSER = FunctionSignature("iParser", (), ("address",))

PARSE2 = FunctionSignature("parse2", ("bytes",), ("bytes",))

#: Functions :py:func:`decode_function_call` recognises
KNOWN_FUNCTIONS = (
    APPROVE,
    ALLOWANCE,
    DEPOSIT2,
    ADD_ORDER2,
    AGGREGATE3,
    I_INTERPRETER,
    I_STORE,
    I_PARSER,
    PARSE2,
)


def decode_function_call(data: bytes) -> tuple[FunctionSignature, tuple]:
    """Figure out which function calldata calls and decode its arguments.

    :raise UnknownFunction:
        Not one of :py:data:`KNOWN_FUNCTIONS`
    """
    selector = data[:4]
    for func in KNOWN_FUNCTIONS:
        if func.selector == selector:
            return func, func.decode_args(data)
    raise UnknownFunction(f"Unknown function selector 0x{selector.hex()}")
