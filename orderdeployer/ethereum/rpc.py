"""Read-only JSON-RPC client.

Everything we read from the chain is a plain ``eth_call``:
a target address and calldata in, raw return bytes out.
Tests swap in :py:class:`orderdeployer.testing.mock_rpc.MockReadableClient`.
"""
import abc
import logging

from hexbytes import HexBytes
from web3 import HTTPProvider, Web3

from orderdeployer.errors import RpcError
from orderdeployer.state.types import JSONHexAddress


logger = logging.getLogger(__name__)


class RpcCallFailed(RpcError):
    """A contract call could not be completed."""

    def __init__(self, address: JSONHexAddress, selector: str, cause: Exception | str):
        self.address = address
        self.selector = selector
        self.cause = cause
        super().__init__(f"Call {selector} to {address} failed: {cause}")


class ReadableClient(abc.ABC):
    """Issue read-only contract calls."""

    @abc.abstractmethod
    def call(self, address: JSONHexAddress, data: bytes) -> bytes:
        """Call a contract.

        :param address:
            Contract address

        :param data:
            ABI encoded calldata with the function selector

        :return:
            Raw ABI encoded return data

        :raise RpcCallFailed:
            Transport failure or the call reverted
        """


def create_web3(url: str) -> Web3:
    """Create a new Web3.py connection.

    :param url:
        JSON-RPC node URL
    """
    provider = HTTPProvider(url)
    web3 = Web3(provider)
    logger.info("Created JSON-RPC connection to %s", provider.endpoint_uri)
    return web3


class Web3ReadableClient(ReadableClient):
    """Contract reads over a Web3.py connection."""

    def __init__(self, web3: Web3):
        self.web3 = web3

    def __repr__(self):
        return f"<Web3ReadableClient {self.web3.provider}>"

    @classmethod
    def from_url(cls, url: str) -> "Web3ReadableClient":
        return cls(create_web3(url))

    def call(self, address: JSONHexAddress, data: bytes) -> bytes:
        selector = "0x" + data[:4].hex()
        logger.debug("eth_call %s on %s, %d bytes", selector, address, len(data))
        try:
            result = self.web3.eth.call({
                "to": Web3.to_checksum_address(address),
                "data": HexBytes(data),
            })
        except Exception as e:
            # web3 raises from many layers: HTTP, JSON-RPC error payloads, reverts
            raise RpcCallFailed(address, selector, e) from e
        return bytes(result)
