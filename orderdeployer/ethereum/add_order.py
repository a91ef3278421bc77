"""Add order calldata.

Adding an order needs the expression compiled to bytecode on-chain.
We resolve it from the deployer contract with a short pipeline of reads:

1. ``deployer.iInterpreter()``

2. ``deployer.iStore()``

3. ``deployer.iParser()``

4. ``parser.parse2(rainlang)`` where ``parser`` is the result of the previous step

Each step takes the resolution so far and returns it with one more fact filled in.
Steps run strictly one after another and the first failure stops the pipeline.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from orderdeployer.deployment.config import DeploymentConfig
from orderdeployer.deployment.frontmatter import InvalidConfig
from orderdeployer.deployment.rainlang import (
    ADD_ORDER_POST_TASK_ENTRYPOINTS,
    ORDER_ENTRYPOINTS,
    build_order_meta,
    compose_rainlang,
    has_entrypoints,
)
from orderdeployer.errors import RpcError
from orderdeployer.ethereum.abi import ADD_ORDER2, I_INTERPRETER, I_PARSER, I_STORE, PARSE2, FunctionSignature
from orderdeployer.ethereum.calldata import Calldata, MulticallCalldata, encode_multicall, generate_deposit_calldatas
from orderdeployer.ethereum.rpc import ReadableClient
from orderdeployer.state.codec import encode_record
from orderdeployer.state.identifier import OrderIO
from orderdeployer.state.session import SessionState
from orderdeployer.state.types import JSONHexAddress


logger = logging.getLogger(__name__)


class DeployerResolutionFailed(RpcError):
    """A step of the deployer resolution pipeline failed."""

    def __init__(self, step: str, address: JSONHexAddress | None, cause: Exception):
        self.step = step
        self.address = address
        self.cause = cause
        super().__init__(f"Resolving {step} from {address} failed: {cause}")


@dataclass(frozen=True)
class DeployerResolution:
    """What we know of the deployer after each pipeline step."""

    #: Expression deployer contract
    deployer: JSONHexAddress

    #: Composed source to parse
    rainlang: str

    interpreter: Optional[JSONHexAddress] = None

    store: Optional[JSONHexAddress] = None

    parser: Optional[JSONHexAddress] = None

    bytecode: Optional[bytes] = None


@dataclass(frozen=True)
class ResolutionStep:
    """One read of the pipeline."""

    #: Which fact this step resolves
    name: str

    #: Attribute of :py:class:`DeployerResolution` holding the contract we call
    target: str

    #: (client, resolution so far) -> resolution with one more fact
    resolve: Callable[[ReadableClient, DeployerResolution], DeployerResolution]

    def get_target_address(self, resolution: DeployerResolution) -> JSONHexAddress | None:
        return getattr(resolution, self.target)


@dataclass(frozen=True)
class AddOrderCalldata(Calldata):
    """Orderbook ``addOrder2()``."""

    resolution: Optional[DeployerResolution] = None

    nonce: bytes = b""

    secret: bytes = b""

    #: Order meta document
    meta: bytes = b""


def _read_address(client: ReadableClient, address: JSONHexAddress, func: FunctionSignature) -> JSONHexAddress:
    raw = client.call(address, func.encode_call())
    (result,) = func.decode_result(raw)
    return result.lower()


def resolve_interpreter(client: ReadableClient, resolution: DeployerResolution) -> DeployerResolution:
    return replace(resolution, interpreter=_read_address(client, resolution.deployer, I_INTERPRETER))


def resolve_store(client: ReadableClient, resolution: DeployerResolution) -> DeployerResolution:
    return replace(resolution, store=_read_address(client, resolution.deployer, I_STORE))


def resolve_parser(client: ReadableClient, resolution: DeployerResolution) -> DeployerResolution:
    return replace(resolution, parser=_read_address(client, resolution.deployer, I_PARSER))


def resolve_bytecode(client: ReadableClient, resolution: DeployerResolution) -> DeployerResolution:
    assert resolution.parser, "Parser must be resolved before bytecode"
    raw = client.call(resolution.parser, PARSE2.encode_call(resolution.rainlang.encode("utf-8")))
    (bytecode,) = PARSE2.decode_result(raw)
    return replace(resolution, bytecode=bytes(bytecode))


INTERPRETER_STEP = ResolutionStep("interpreter", "deployer", resolve_interpreter)

STORE_STEP = ResolutionStep("store", "deployer", resolve_store)

PARSER_STEP = ResolutionStep("parser", "deployer", resolve_parser)

BYTECODE_STEP = ResolutionStep("bytecode", "parser", resolve_bytecode)

#: The full pipeline, in the execution order
DEPLOYER_RESOLUTION_PIPELINE = (INTERPRETER_STEP, STORE_STEP, PARSER_STEP, BYTECODE_STEP)


def run_resolution_pipeline(
    client: ReadableClient,
    resolution: DeployerResolution,
    steps: Sequence[ResolutionStep] = DEPLOYER_RESOLUTION_PIPELINE,
) -> DeployerResolution:
    """Run the resolution steps in order.

    :raise DeployerResolutionFailed:
        Tells the failed step and the contract it called
    """
    for step in steps:
        address = step.get_target_address(resolution)
        try:
            resolution = step.resolve(client, resolution)
        except (RpcError, DecodingError) as e:
            raise DeployerResolutionFailed(step.name, address, e) from e
        logger.debug("Resolved %s from %s", step.name, address)
    return resolution


def derive_nonce(config: DeploymentConfig, state: SessionState) -> bytes:
    """Order nonce as a function of the session.

    The same session state produces the same order.
    """
    return keccak(encode_record(state, config))


def derive_secret(nonce: bytes) -> bytes:
    return keccak(nonce)


def _encode_io(io: OrderIO) -> tuple:
    if io.vault_id is None:
        raise InvalidConfig(f"Order input/output {io.token.key} has no vault id")
    return io.token.address, io.token.decimals, io.vault_id


def build_add_order_calldata(
    client: ReadableClient,
    config: DeploymentConfig,
    state: SessionState,
    nonce: Optional[bytes] = None,
    secret: Optional[bytes] = None,
) -> AddOrderCalldata:
    """Create ``addOrder2()`` calldata for the deployment.

    :param client:
        For reading the deployer and parsing the expression

    :param nonce:
        32 bytes order nonce. Derived from the session state if not given.

    :param secret:
        32 bytes secret. Derived from the nonce if not given.

    :raise ComposeError:
        The body lacks entrypoints or a binding has no value

    :raise DeployerResolutionFailed:
        Reading from the deployer or parsing failed
    """
    state.check_minimums()

    bindings = state.get_bindings()
    rainlang = compose_rainlang(config.body, ORDER_ENTRYPOINTS, bindings)

    resolution = run_resolution_pipeline(
        client,
        DeployerResolution(deployer=config.deployer.address, rainlang=rainlang),
    )

    tasks = []
    if has_entrypoints(config.body, ADD_ORDER_POST_TASK_ENTRYPOINTS):
        post_rainlang = compose_rainlang(config.body, ADD_ORDER_POST_TASK_ENTRYPOINTS, bindings)
        # Interpreter, store and parser are already known, only parse
        post_resolution = run_resolution_pipeline(
            client,
            replace(resolution, rainlang=post_rainlang, bytecode=None),
            steps=(BYTECODE_STEP,),
        )
        post_evaluable = (post_resolution.interpreter, post_resolution.store, post_resolution.bytecode)
        tasks.append((post_evaluable, []))

    if nonce is None:
        nonce = derive_nonce(config, state)

    if secret is None:
        secret = derive_secret(nonce)

    assert len(nonce) == 32, f"Nonce must be 32 bytes, got {len(nonce)}"
    assert len(secret) == 32, f"Secret must be 32 bytes, got {len(secret)}"

    meta = build_order_meta(rainlang)
    evaluable = (resolution.interpreter, resolution.store, resolution.bytecode)
    order_config = (
        evaluable,
        [_encode_io(io) for io in config.inputs],
        [_encode_io(io) for io in config.outputs],
        nonce,
        secret,
        meta,
    )

    logger.info(
        "Add order to %s, interpreter %s, store %s, bytecode %d bytes, %d post tasks",
        config.orderbook,
        resolution.interpreter,
        resolution.store,
        len(resolution.bytecode),
        len(tasks),
    )

    return AddOrderCalldata(
        target=config.orderbook.address,
        data=ADD_ORDER2.encode_call(order_config, tasks),
        label=f"Add order {config.name}",
        resolution=resolution,
        nonce=nonce,
        secret=secret,
        meta=meta,
    )


def generate_deposit_and_add_order_calldatas(
    client: ReadableClient,
    config: DeploymentConfig,
    state: SessionState,
    nonce: Optional[bytes] = None,
    secret: Optional[bytes] = None,
) -> MulticallCalldata:
    """All deposits and the add order call as one atomic multicall.

    Deposits come first in the deposit order, add order is the last call.
    """
    deposits = generate_deposit_calldatas(config, state)
    add_order = build_add_order_calldata(client, config, state, nonce=nonce, secret=secret)
    calls = [*deposits, add_order]
    return encode_multicall(
        config.orderbook.address,
        calls,
        label=f"Deposit and add order {config.name}",
    )
