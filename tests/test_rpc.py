"""Web3.py backed contract reads."""
import pytest
from hexbytes import HexBytes

from orderdeployer.ethereum.abi import ALLOWANCE
from orderdeployer.ethereum.rpc import RpcCallFailed, Web3ReadableClient

TOKEN = "0xc2132d05d31c914a87c6611c10748aeb04b58e8f"


def test_call(mocker):
    web3 = mocker.Mock()
    web3.eth.call.return_value = HexBytes("0x" + "00" * 31 + "01")
    client = Web3ReadableClient(web3)

    data = ALLOWANCE.encode_call(TOKEN, TOKEN)
    result = client.call(TOKEN, data)
    assert result == b"\x00" * 31 + b"\x01"

    (tx,), _ = web3.eth.call.call_args
    assert tx["to"] == "0xc2132D05D31c914a87C6611C10748AEb04B58e8F"
    assert bytes(tx["data"]) == data


def test_call_failure(mocker):
    """Transport errors and reverts are reported with the contract and the selector."""
    web3 = mocker.Mock()
    web3.eth.call.side_effect = ValueError("execution reverted")
    client = Web3ReadableClient(web3)

    with pytest.raises(RpcCallFailed) as exc_info:
        client.call(TOKEN, ALLOWANCE.encode_call(TOKEN, TOKEN))

    assert exc_info.value.address == TOKEN
    assert exc_info.value.selector == "0xdd62ed3e"
    assert "execution reverted" in str(exc_info.value)
