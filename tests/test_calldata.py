"""Approval, deposit and multicall calldata."""
import pytest

from orderdeployer.ethereum.abi import APPROVE, DEPOSIT2, UnknownFunction, decode_function_call
from orderdeployer.ethereum.allowance import AllowanceResult
from orderdeployer.ethereum.calldata import (
    AllowanceNotResolved,
    decode_multicall,
    encode_multicall,
    generate_approval_calldatas,
    generate_deposit_calldatas,
)
from orderdeployer.deployment.config import load
from orderdeployer.state.codec import deserialize, serialize
from orderdeployer.state.session import SessionState, ValueBelowMinimum

TOKEN_1 = "0xc2132d05d31c914a87c6611c10748aeb04b58e8f"

TOKEN_2 = "0x8f3cf7ad23cd3cadbd9735aff958023239c6a063"

ORDERBOOK = "0xc95a5f8efe14d7a20bd2e5bafec4e71f8ce0b9a6"

#: deposit2(token1, 1, 2000 * 10**6, [])
DEPOSIT_TOKEN_1 = "0x91337c0a000000000000000000000000c2132d05d31c914a87c6611c10748aeb04b58e8f0000000000000000000000000000000000000000000000000000000000000001000000000000000000000000000000000000000000000000000000007735940000000000000000000000000000000000000000000000000000000000000000800000000000000000000000000000000000000000000000000000000000000000"

#: deposit2(token2, 1, 5000 * 10**18, [])
DEPOSIT_TOKEN_2 = "0x91337c0a0000000000000000000000008f3cf7ad23cd3cadbd9735aff958023239c6a063000000000000000000000000000000000000000000000000000000000000000100000000000000000000000000000000000000000000010f0cf064dd5920000000000000000000000000000000000000000000000000000000000000000000800000000000000000000000000000000000000000000000000000000000000000"


@pytest.fixture()
def state(config_2) -> SessionState:
    state = SessionState(config_2)
    state.set_deposit("token1", "2000")
    state.set_deposit("token2", "5000")
    return state


def test_deposit_calldatas(config_2, state):
    calldatas = generate_deposit_calldatas(config_2, state)
    assert len(calldatas) == 2
    assert calldatas[0].hex() == DEPOSIT_TOKEN_1
    assert calldatas[1].hex() == DEPOSIT_TOKEN_2
    assert all(c.target == ORDERBOOK for c in calldatas)
    assert calldatas[0].vault_id == 1
    assert calldatas[0].amount == 2000 * 10**6


def test_deposit_order_follows_session(config_2):
    state = SessionState(config_2)
    state.set_deposit("token2", "5000")
    state.set_deposit("token1", "2000")
    calldatas = generate_deposit_calldatas(config_2, state)
    assert [c.hex() for c in calldatas] == [DEPOSIT_TOKEN_2, DEPOSIT_TOKEN_1]


def test_no_deposits(config_2):
    assert generate_deposit_calldatas(config_2, SessionState(config_2)) == []


def test_approval_calldatas(config_2, state):
    """Approve the full deposit amount when the allowance is short."""
    allowances = [
        AllowanceResult(token=TOKEN_1, allowance=1000),
        AllowanceResult(token=TOKEN_2, allowance=1000),
    ]
    calldatas = generate_approval_calldatas(config_2, state, allowances)
    assert len(calldatas) == 2

    assert calldatas[0].target == TOKEN_1
    assert calldatas[0].hex() == (
        "0x095ea7b3"
        "000000000000000000000000c95a5f8efe14d7a20bd2e5bafec4e71f8ce0b9a6"
        "0000000000000000000000000000000000000000000000000000000077359400"
    )

    assert calldatas[1].target == TOKEN_2
    assert calldatas[1].hex() == (
        "0x095ea7b3"
        "000000000000000000000000c95a5f8efe14d7a20bd2e5bafec4e71f8ce0b9a6"
        "00000000000000000000000000000000000000000000010f0cf064dd59200000"
    )
    assert calldatas[1].amount == 5000 * 10**18


def test_sufficient_allowance_skipped(config_2, state):
    allowances = [
        AllowanceResult(token=TOKEN_1, allowance=2000 * 10**6),
        AllowanceResult(token=TOKEN_2, allowance=0),
    ]
    calldatas = generate_approval_calldatas(config_2, state, allowances)
    assert [c.token for c in calldatas] == ["token2"]

    func, (spender, amount) = decode_function_call(calldatas[0].data)
    assert func == APPROVE
    assert spender.lower() == ORDERBOOK
    assert amount == 5000 * 10**18


def test_missing_allowance(config_2, state):
    with pytest.raises(AllowanceNotResolved):
        generate_approval_calldatas(config_2, state, [AllowanceResult(token=TOKEN_1, allowance=0)])


def test_below_minimum(config):
    """Deposits below the configured minimum are refused when compiling."""
    state = SessionState(config)
    state.set_field_value("binding-2", "1")
    state.set_deposit("token1", "10")
    with pytest.raises(ValueBelowMinimum):
        generate_deposit_calldatas(config, state)


def test_multicall(config_2, state):
    """Inner calls are kept as is and none may fail."""
    deposits = generate_deposit_calldatas(config_2, state)
    multicall = encode_multicall(ORDERBOOK, deposits)
    assert multicall.hex().startswith("0x82ad56cb")
    assert multicall.target == ORDERBOOK

    decoded = decode_multicall(multicall.data)
    assert decoded == [
        (ORDERBOOK, False, deposits[0].data),
        (ORDERBOOK, False, deposits[1].data),
    ]
    func, args = decode_function_call(decoded[0][2])
    assert func == DEPOSIT2


def test_decode_unknown_function():
    with pytest.raises(UnknownFunction):
        decode_function_call(bytes.fromhex("deadbeef"))


def test_restored_session_follows_current_token_address(config_2, state, order_document_2):
    """A token moved to a new address after the state was saved is approved and deposited at the new address."""
    new_address = "0x" + "ab" * 20
    moved = load(order_document_2.replace(TOKEN_1, new_address), "other-deployment")
    restored = deserialize(serialize(state, config_2), moved)

    assert restored.list_deposits()[0].address == new_address

    allowances = [
        AllowanceResult(token=new_address, allowance=0),
        AllowanceResult(token=TOKEN_2, allowance=0),
    ]
    approvals = generate_approval_calldatas(moved, restored, allowances)
    deposits = generate_deposit_calldatas(moved, restored)

    assert approvals[0].target == new_address
    token, _, _, _ = DEPOSIT2.decode_args(deposits[0].data)
    assert token.lower() == new_address
