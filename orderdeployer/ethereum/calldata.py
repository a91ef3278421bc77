"""Transaction calldata for deploying an order.

Approvals, deposits and the multicall bundling deposits with the add order call.
See :py:mod:`orderdeployer.ethereum.add_order` for the add order call itself.

Nothing here signs or broadcasts transactions.
The output is calldata the wallet layer submits as is.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from eth_defi.abi import present_solidity_args

from orderdeployer.deployment.config import DeploymentConfig
from orderdeployer.errors import BindingError
from orderdeployer.ethereum.abi import AGGREGATE3, APPROVE, DEPOSIT2
from orderdeployer.ethereum.allowance import AllowanceResult
from orderdeployer.ethereum.token import to_native_units
from orderdeployer.state.session import SessionState
from orderdeployer.state.types import JSONHexAddress, NativeAmount, TokenKey, VaultId


logger = logging.getLogger(__name__)


class AllowanceNotResolved(BindingError):
    """A deposited token has no allowance result to compare against."""


@dataclass(frozen=True)
class Calldata:
    """A contract call payload."""

    #: Contract the call is sent to, lowercase
    target: JSONHexAddress

    #: Selector and ABI encoded arguments
    data: bytes

    #: Human readable description
    label: str

    def __str__(self):
        return f"<{self.label} to {self.target}, {len(self.data)} bytes>"

    def hex(self) -> str:
        """Calldata as a 0x prefixed hex string."""
        return "0x" + self.data.hex()


@dataclass(frozen=True)
class ApprovalCalldata(Calldata):
    """ERC-20 ``approve()`` sent to the token."""

    token: TokenKey = ""

    spender: JSONHexAddress = ""

    amount: NativeAmount = 0


@dataclass(frozen=True)
class DepositCalldata(Calldata):
    """Orderbook ``deposit2()``."""

    token: TokenKey = ""

    vault_id: VaultId = 0

    amount: NativeAmount = 0


@dataclass(frozen=True)
class MulticallCalldata(Calldata):
    """Multicall3 ``aggregate3()`` bundling several calls to the same contract."""

    calls: tuple[Calldata, ...] = ()


def generate_approval_calldatas(
    config: DeploymentConfig,
    state: SessionState,
    allowances: Sequence[AllowanceResult],
) -> list[ApprovalCalldata]:
    """Approve the orderbook for deposits that lack allowance.

    - A token is approved only if its current allowance is below the deposit amount

    - The approved amount is the full deposit amount, not the missing part

    :param allowances:
        Output of :py:func:`orderdeployer.ethereum.allowance.check_allowances`

    :return:
        Approvals in the deposit order. Sufficiently approved tokens are left out.

    :raise AllowanceNotResolved:
        A deposit has no allowance result
    """
    state.check_minimums()

    allowance_map = {a.token.lower(): a.allowance for a in allowances}
    spender = config.orderbook.address
    result = []

    for deposit in state.list_deposits():
        spec = config.deposit_spec(deposit.token)
        amount = to_native_units(deposit.amount, spec.token.decimals)

        # Approve the same contract the deposit pulls from
        token_address = spec.token.address
        current = allowance_map.get(token_address)
        if current is None:
            raise AllowanceNotResolved(f"No allowance result for deposit token {deposit.token} at {token_address}")

        if current >= amount:
            logger.info("Token %s has allowance %d, needs %d, no approval needed", spec.token, current, amount)
            continue

        args = [spender, amount]
        logger.info("Approve %s(%s)", spec.token, present_solidity_args(args))
        result.append(ApprovalCalldata(
            target=token_address,
            data=APPROVE.encode_call(*args),
            label=f"Approve {spec.token.symbol or deposit.token}",
            token=deposit.token,
            spender=spender,
            amount=amount,
        ))

    return result


def build_deposit_calldata(
    config: DeploymentConfig,
    token: TokenKey,
    human_amount: str,
) -> DepositCalldata:
    """Deposit one token to its order vault.

    The post deposit task list is left empty.
    """
    spec = config.deposit_spec(token)
    amount = to_native_units(human_amount, spec.token.decimals)
    vault_id = config.vault_id_for(token)
    args = [spec.token.address, vault_id, amount, []]
    logger.info("Deposit %s(%s)", config.orderbook, present_solidity_args(args))
    return DepositCalldata(
        target=config.orderbook.address,
        data=DEPOSIT2.encode_call(*args),
        label=f"Deposit {spec.token.symbol or token}",
        token=token,
        vault_id=vault_id,
        amount=amount,
    )


def generate_deposit_calldatas(
    config: DeploymentConfig,
    state: SessionState,
) -> list[DepositCalldata]:
    """One deposit per deposited token, in the deposit order."""
    state.check_minimums()
    return [
        build_deposit_calldata(config, d.token, d.amount)
        for d in state.list_deposits()
    ]


def encode_multicall(
    target: JSONHexAddress,
    calls: Sequence[Calldata],
    label: Optional[str] = None,
) -> MulticallCalldata:
    """Bundle calls to one atomic Multicall3 ``aggregate3()``.

    Every inner call is sent to `target` and none is allowed to fail.
    The multicall itself is sent to `target` too.
    """
    call3s = [(target, False, c.data) for c in calls]
    return MulticallCalldata(
        target=target,
        data=AGGREGATE3.encode_call(call3s),
        label=label or f"Multicall of {len(calls)} calls",
        calls=tuple(calls),
    )


def decode_multicall(data: bytes) -> list[tuple[JSONHexAddress, bool, bytes]]:
    """Decode ``aggregate3()`` calldata to (target, allow failure, calldata) tuples."""
    (call3s,) = AGGREGATE3.decode_args(data)
    return [(target.lower(), allow_failure, bytes(inner)) for target, allow_failure, inner in call3s]
