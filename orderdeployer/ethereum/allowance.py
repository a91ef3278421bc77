"""ERC-20 allowance checks for deposits.

Before depositing, the orderbook must be allowed to pull the tokens
from the owner. We read the current ``allowance(owner, orderbook)``
for every deposited token.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import Sequence

import futureproof
from dataclasses_json import dataclass_json
from eth_abi.exceptions import DecodingError

from orderdeployer.errors import RpcError
from orderdeployer.ethereum.abi import ALLOWANCE
from orderdeployer.ethereum.rpc import ReadableClient
from orderdeployer.state.session import DepositEntry
from orderdeployer.state.types import JSONHexAddress, NativeAmount


logger = logging.getLogger(__name__)


#: How many allowance reads we run parallel
DEFAULT_MAX_WORKERS = 8


class AllowanceQueryFailed(RpcError):
    """Reading the allowance of a token failed.

    The whole batch is aborted. Retry the token with :py:func:`fetch_allowance`.
    """

    def __init__(self, token: JSONHexAddress, cause: Exception):
        self.token = token
        self.cause = cause
        super().__init__(f"Allowance query failed for token {token}: {cause}")


@dataclass_json
@dataclass(frozen=True)
class AllowanceResult:
    """Current on-chain allowance of a token."""

    #: Token address, lowercase
    token: JSONHexAddress

    #: Allowance in the token native units
    allowance: NativeAmount

    def get_hex_allowance(self) -> str:
        """Allowance as a hex string, e.g. ``0x3e8``."""
        return hex(self.allowance)


def fetch_allowance(
    client: ReadableClient,
    token: JSONHexAddress,
    owner: JSONHexAddress,
    spender: JSONHexAddress,
) -> NativeAmount:
    """Read one allowance.

    :raise AllowanceQueryFailed:
        The call failed or returned garbage
    """
    data = ALLOWANCE.encode_call(owner.lower(), spender.lower())
    try:
        raw = client.call(token, data)
        (allowance,) = ALLOWANCE.decode_result(raw)
    except (RpcError, DecodingError) as e:
        raise AllowanceQueryFailed(token, e) from e
    logger.debug("Allowance of %s for %s -> %s is %d", token, owner, spender, allowance)
    return allowance


def _read_allowance(
    idx: int,
    client: ReadableClient,
    token: JSONHexAddress,
    owner: JSONHexAddress,
    spender: JSONHexAddress,
) -> tuple[int, AllowanceResult]:
    allowance = fetch_allowance(client, token, owner, spender)
    return idx, AllowanceResult(token=token, allowance=allowance)


def check_allowances(
    client: ReadableClient,
    owner: JSONHexAddress,
    deposits: Sequence[DepositEntry],
    spender: JSONHexAddress,
    max_workers=DEFAULT_MAX_WORKERS,
) -> list[AllowanceResult]:
    """Read allowances of all deposited tokens.

    Reads are done parallel, but the results come in the deposit order.

    :param owner:
        The address that makes the deposits

    :param deposits:
        Deposits from the session state

    :param spender:
        The orderbook address

    :param max_workers:
        Thread pool size. Set to 1 to read in the calling thread.

    :raise AllowanceQueryFailed:
        Any of the reads failed
    """
    if len(deposits) == 0:
        return []

    task_args = [(idx, client, d.address, owner, spender) for idx, d in enumerate(deposits)]
    results: list[AllowanceResult | None] = [None] * len(deposits)

    if max_workers > 1 and len(deposits) > 1:
        executor = futureproof.ThreadPoolExecutor(max_workers=min(max_workers, len(deposits)))
        tm = futureproof.TaskManager(executor, error_policy=futureproof.ErrorPolicyEnum.RAISE)

        # Run the reads parallel using the thread pool
        tm.map(_read_allowance, task_args)

        for task in tm.as_completed():
            idx, result = task.result
            results[idx] = result
    else:
        for idx, result in itertools.starmap(_read_allowance, task_args):
            results[idx] = result

    logger.info("Checked %d allowances for owner %s, spender %s", len(results), owner, spender)
    return results
