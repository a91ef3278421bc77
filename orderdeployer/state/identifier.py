"""Token, network and contract identifiers.

Resolved from the order document front matter once when the
deployment is loaded. Other components only refer to these.
"""
from dataclasses import dataclass
from typing import Optional

from dataclasses_json import dataclass_json
from eth_typing import HexAddress
from web3 import Web3

from orderdeployer.state.types import JSONHexAddress, TokenKey


@dataclass_json
@dataclass(frozen=True)
class NetworkInfo:
    """JSON-RPC network the deployment lives on."""

    #: Key in the ``networks`` section
    key: str

    #: JSON-RPC endpoint URL
    rpc: str

    #: See https://chainlist.org/
    chain_id: int

    network_id: Optional[int] = None

    #: Native currency symbol, e.g. ``ETH``
    currency: Optional[str] = None


@dataclass_json
@dataclass(frozen=True)
class TokenInfo:
    """ERC-20 token as described in the ``tokens`` section.

    We do not read token details from the chain.
    The order document is the source of truth for decimals.
    """

    #: Key in the ``tokens`` section
    key: TokenKey

    #: Smart contract address of the token.
    #: Always lowercase.
    address: JSONHexAddress

    #: How many decimals this token has.
    #: Must be always set and non-negative.
    decimals: int

    #: Key of the network this token is deployed on
    network: str

    label: Optional[str] = None

    symbol: Optional[str] = None

    def __str__(self):
        return f"<{self.symbol or self.key} at {self.address}>"

    @property
    def checksum_address(self) -> HexAddress:
        return Web3.to_checksum_address(self.address)


@dataclass_json
@dataclass(frozen=True)
class ContractInfo:
    """A deployed contract we talk to: an orderbook or an expression deployer."""

    key: str

    #: Always lowercase
    address: JSONHexAddress

    #: Key of the network this contract is deployed on
    network: str

    def __str__(self):
        return f"<{self.key} at {self.address}>"

    @property
    def checksum_address(self) -> HexAddress:
        return Web3.to_checksum_address(self.address)


@dataclass_json
@dataclass(frozen=True)
class OrderIO:
    """One input or output of an order."""

    token: TokenInfo

    #: Vault id in the orderbook.
    #:
    #: Order documents may leave this out.
    vault_id: Optional[int] = None
