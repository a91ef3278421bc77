"""Deployment configuration model.

Read a deployment scoped view out of the order document:

- The ``gui`` section tells what the user can configure: deposits and fields

- ``deployments``, ``orders``, ``scenarios``, ``tokens``, ``networks``,
  ``orderbooks`` and ``deployers`` sections tell where and how the order is added

The result :py:class:`DeploymentConfig` is immutable and loaded once per session.
"""
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from eth_utils import is_hex_address, keccak

from orderdeployer.deployment.frontmatter import InvalidConfig, parse_front_matter, split_document
from orderdeployer.errors import BindingError, ConfigError
from orderdeployer.state.identifier import ContractInfo, NetworkInfo, OrderIO, TokenInfo
from orderdeployer.state.types import BindingId, TokenKey, VaultId


logger = logging.getLogger(__name__)


class ConfigSectionMissing(ConfigError):
    """The order document has no ``gui`` section."""


class DeploymentNotFound(ConfigError):
    """The deployment id is not in the order document."""


class UnknownBinding(BindingError):
    """Field binding is not configured for this deployment."""


class UnknownDepositToken(BindingError):
    """Deposit token is not configured for this deployment."""


@dataclass(frozen=True)
class Preset:
    """Preset value offered for a field."""

    value: str

    #: Presets may come without a name, then the value is shown as is
    name: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    """A configurable field of a deployment."""

    #: Binding this field sets in the order body
    binding: BindingId

    #: Human readable name
    name: str

    description: Optional[str] = None

    #: Numeric values below this are rejected when calldata is compiled
    min: Optional[Decimal] = None

    presets: tuple[Preset, ...] = ()


@dataclass(frozen=True)
class DepositSpec:
    """A token the user may deposit when deploying."""

    token: TokenInfo

    #: Deposits below this are rejected when calldata is compiled
    min: Optional[Decimal] = None

    #: Human readable preset amounts
    presets: tuple[str, ...] = ()

    @property
    def key(self) -> TokenKey:
        return self.token.key


@dataclass(frozen=True)
class GuiInfo:
    """Top level name and description of the gui section."""

    name: str

    description: Optional[str] = None


@dataclass(frozen=True)
class DeploymentConfig:
    """Validated deployment.

    Use :py:func:`load` to construct.
    """

    #: Key in the ``deployments`` section
    deployment_id: str

    name: str

    description: Optional[str]

    gui: GuiInfo

    #: Deposit specs in the document order
    deposits: tuple[DepositSpec, ...]

    #: Field specs in the document order
    fields: tuple[FieldSpec, ...]

    network: NetworkInfo

    orderbook: ContractInfo

    deployer: ContractInfo

    inputs: tuple[OrderIO, ...]

    outputs: tuple[OrderIO, ...]

    #: Binding values set by the scenario, as (binding, value) pairs
    scenario_bindings: tuple[tuple[str, str], ...] = ()

    #: Order document body, everything after the front matter
    body: str = ""

    #: All tokens of the document on this network, by key
    tokens: tuple[TokenInfo, ...] = ()

    _field_index: dict = field(init=False, repr=False, compare=False)
    _deposit_index: dict = field(init=False, repr=False, compare=False)
    _token_index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_field_index", {f.binding: f for f in self.fields})
        object.__setattr__(self, "_deposit_index", {d.key: d for d in self.deposits})
        object.__setattr__(self, "_token_index", {t.key: t for t in self.tokens})

    def __str__(self):
        return f"<Deployment {self.deployment_id} with {len(self.fields)} fields and {len(self.deposits)} deposits>"

    def field_spec(self, binding: BindingId) -> FieldSpec:
        """Get a field definition.

        :raise UnknownBinding:
            Not a field of this deployment
        """
        spec = self._field_index.get(binding)
        if spec is None:
            raise UnknownBinding(f"Field binding not found: {binding}")
        return spec

    def deposit_spec(self, token: TokenKey) -> DepositSpec:
        """Get a deposit definition.

        :raise UnknownDepositToken:
            Not a deposit token of this deployment
        """
        spec = self._deposit_index.get(token)
        if spec is None:
            raise UnknownDepositToken(f"Deposit token not found in gui config: {token}")
        return spec

    def has_field(self, binding: BindingId) -> bool:
        return binding in self._field_index

    def has_deposit(self, token: TokenKey) -> bool:
        return token in self._deposit_index

    def list_field_specs(self) -> list[FieldSpec]:
        return list(self.fields)

    def list_deposit_specs(self) -> list[DepositSpec]:
        return list(self.deposits)

    def token_info(self, token: TokenKey) -> TokenInfo:
        """Get any token of the document by its key."""
        info = self._token_index.get(token)
        if info is None:
            raise UnknownDepositToken(f"Token not found: {token}")
        return info

    def vault_id_for(self, token: TokenKey) -> VaultId:
        """Which vault a deposit of a token goes to.

        Outputs are checked first as deposits fund what the order sells.

        :raise InvalidConfig:
            The token is not an order input or output with a vault id
        """
        for io in self.outputs + self.inputs:
            if io.token.key == token and io.vault_id is not None:
                return io.vault_id
        raise InvalidConfig(f"No vault id configured for token {token} in the order of deployment {self.deployment_id}")

    def fingerprint(self) -> bytes:
        """Structural digest of this deployment.

        Covers the deployment id, field bindings with presets and deposit tokens with presets.
        Used to refuse serialised state from another deployment.

        :return:
            32 bytes keccak-256 digest
        """
        structure = {
            "deployment": self.deployment_id,
            "fields": [
                {
                    "binding": f.binding,
                    "presets": [[p.name, p.value] for p in f.presets],
                }
                for f in self.fields
            ],
            "deposits": [
                {
                    "token": d.key,
                    "presets": list(d.presets),
                }
                for d in self.deposits
            ],
        }
        canonical = json.dumps(structure, sort_keys=True, separators=(",", ":"))
        return keccak(text=canonical)


def _to_str(value: Any, where: str) -> str:
    """Scalar value as typed in the document."""
    if not isinstance(value, str):
        raise InvalidConfig(f"Expected a plain value for {where}, got {value!r}")
    return value


def _parse_address(value: Any, where: str) -> str:
    if not isinstance(value, str) or not is_hex_address(value):
        raise InvalidConfig(f"Bad address for {where}: {value!r}")
    return value.lower()


def _parse_decimal(value: Any, where: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(_to_str(value, where))
    except InvalidOperation as e:
        raise InvalidConfig(f"Bad number for {where}: {value!r}") from e


def _parse_int(value: Any, where: str) -> int:
    try:
        return int(_to_str(value, where))
    except ValueError as e:
        raise InvalidConfig(f"Bad integer for {where}: {value!r}") from e


def _get_section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfig(f"Section {name} must be a mapping")
    return section


def _lookup(data: dict, section: str, key: str, referrer: str) -> dict:
    entry = _get_section(data, section).get(key)
    if not isinstance(entry, dict):
        raise InvalidConfig(f"{referrer} refers to {key}, not found in section {section}")
    return entry


def _parse_network(data: dict, key: str, referrer: str) -> NetworkInfo:
    entry = _lookup(data, "networks", key, referrer)
    if "rpc" not in entry:
        raise InvalidConfig(f"Network {key} lacks rpc")
    if "chain-id" not in entry:
        raise InvalidConfig(f"Network {key} lacks chain-id")
    network_id = entry.get("network-id")
    return NetworkInfo(
        key=key,
        rpc=str(entry["rpc"]),
        chain_id=_parse_int(entry["chain-id"], f"network {key} chain-id"),
        network_id=_parse_int(network_id, f"network {key} network-id") if network_id is not None else None,
        currency=entry.get("currency"),
    )


def _parse_token(data: dict, key: str, referrer: str) -> TokenInfo:
    entry = _lookup(data, "tokens", key, referrer)
    if "decimals" not in entry:
        # We do not fetch decimals from the chain
        raise InvalidConfig(f"Token {key} lacks decimals")
    decimals = _parse_int(entry["decimals"], f"token {key} decimals")
    if decimals < 0 or decimals > 255:
        raise InvalidConfig(f"Token {key} has bad decimals: {decimals}")
    return TokenInfo(
        key=key,
        address=_parse_address(entry.get("address"), f"token {key}"),
        decimals=decimals,
        network=str(entry.get("network")),
        label=entry.get("label"),
        symbol=entry.get("symbol"),
    )


def _parse_contract(data: dict, section: str, key: str, referrer: str) -> ContractInfo:
    entry = _lookup(data, section, key, referrer)
    return ContractInfo(
        key=key,
        address=_parse_address(entry.get("address"), f"{section} {key}"),
        network=str(entry.get("network")),
    )


def _parse_io(data: dict, entries: Any, order_key: str, direction: str) -> tuple[OrderIO, ...]:
    if not isinstance(entries, list):
        raise InvalidConfig(f"Order {order_key} {direction} must be a list")
    result = []
    for entry in entries:
        if not isinstance(entry, dict) or "token" not in entry:
            raise InvalidConfig(f"Order {order_key} has a bad {direction} entry: {entry!r}")
        token = _parse_token(data, str(entry["token"]), f"order {order_key}")
        vault_id = entry.get("vault-id")
        result.append(OrderIO(
            token=token,
            vault_id=_parse_int(vault_id, f"order {order_key} vault-id") if vault_id is not None else None,
        ))
    return tuple(result)


def _parse_field(entry: Any) -> FieldSpec:
    if not isinstance(entry, dict) or "binding" not in entry:
        raise InvalidConfig(f"Bad field entry: {entry!r}")
    binding = str(entry["binding"])
    presets = []
    for preset in entry.get("presets") or []:
        if isinstance(preset, dict):
            if "value" not in preset:
                raise InvalidConfig(f"Preset of field {binding} lacks value")
            name = preset.get("name")
            presets.append(Preset(value=_to_str(preset["value"], f"field {binding} preset"), name=str(name) if name is not None else None))
        else:
            presets.append(Preset(value=_to_str(preset, f"field {binding} preset")))
    return FieldSpec(
        binding=binding,
        name=str(entry.get("name", binding)),
        description=entry.get("description"),
        min=_parse_decimal(entry.get("min"), f"field {binding} min"),
        presets=tuple(presets),
    )


def _parse_deposit(data: dict, entry: Any) -> DepositSpec:
    if not isinstance(entry, dict) or "token" not in entry:
        raise InvalidConfig(f"Bad deposit entry: {entry!r}")
    key = str(entry["token"])
    return DepositSpec(
        token=_parse_token(data, key, "gui deposit"),
        min=_parse_decimal(entry.get("min"), f"deposit {key} min"),
        presets=tuple(_to_str(p, f"deposit {key} preset") for p in entry.get("presets") or []),
    )


def _get_gui(data: dict) -> dict:
    gui = data.get("gui")
    if not gui:
        raise ConfigSectionMissing("Gui config not found")
    if not isinstance(gui, dict):
        raise InvalidConfig("Section gui must be a mapping")
    return gui


def load_gui_info(source: str) -> GuiInfo:
    """Read the top level gui name and description.

    :raise ConfigSectionMissing:
        No gui section
    """
    gui = _get_gui(parse_front_matter(source))
    return GuiInfo(name=str(gui.get("name", "")), description=gui.get("description"))


def list_deployments(source: str) -> list[str]:
    """List deployment ids the gui section offers, in the document order."""
    gui = _get_gui(parse_front_matter(source))
    return [str(d.get("deployment")) for d in gui.get("deployments") or [] if isinstance(d, dict)]


def load(source: str, deployment_id: str) -> DeploymentConfig:
    """Load and validate one deployment of an order document.

    :param source:
        Order document text

    :param deployment_id:
        Key in the ``deployments`` section

    :raise ConfigSectionMissing:
        No gui section

    :raise DeploymentNotFound:
        The gui section or the deployments section lacks the deployment

    :raise InvalidConfig:
        Any reference or value in the document is broken
    """
    data = parse_front_matter(source)
    _, body = split_document(source)

    gui = _get_gui(data)

    gui_deployment = None
    for entry in gui.get("deployments") or []:
        if isinstance(entry, dict) and str(entry.get("deployment")) == deployment_id:
            gui_deployment = entry
            break

    if gui_deployment is None:
        raise DeploymentNotFound(f"Deployment not found in gui config: {deployment_id}")

    deployment = _get_section(data, "deployments").get(deployment_id)
    if not isinstance(deployment, dict):
        raise DeploymentNotFound(f"Deployment not found: {deployment_id}")

    scenario_key = str(deployment.get("scenario"))
    order_key = str(deployment.get("order"))
    scenario = _lookup(data, "scenarios", scenario_key, f"deployment {deployment_id}")
    order = _lookup(data, "orders", order_key, f"deployment {deployment_id}")

    deployer_key = order.get("deployer") or scenario.get("deployer")
    if not deployer_key:
        raise InvalidConfig(f"Order {order_key} has no deployer")
    deployer = _parse_contract(data, "deployers", str(deployer_key), f"order {order_key}")

    orderbook_key = order.get("orderbook")
    if not orderbook_key:
        raise InvalidConfig(f"Order {order_key} has no orderbook")
    orderbook = _parse_contract(data, "orderbooks", str(orderbook_key), f"order {order_key}")

    network_key = scenario.get("network") or deployer.network
    network = _parse_network(data, str(network_key), f"scenario {scenario_key}")

    fields = tuple(_parse_field(f) for f in gui_deployment.get("fields") or [])
    deposits = tuple(_parse_deposit(data, d) for d in gui_deployment.get("deposits") or [])

    bindings = [f.binding for f in fields]
    if len(set(bindings)) != len(bindings):
        raise InvalidConfig(f"Deployment {deployment_id} has duplicate field bindings")

    deposit_keys = [d.key for d in deposits]
    if len(set(deposit_keys)) != len(deposit_keys):
        raise InvalidConfig(f"Deployment {deployment_id} has duplicate deposit tokens")

    tokens = tuple(
        _parse_token(data, str(key), "tokens")
        for key, entry in _get_section(data, "tokens").items()
        if isinstance(entry, dict) and str(entry.get("network")) == network.key
    )

    scenario_bindings = tuple(
        (str(k), _to_str(v, f"scenario {scenario_key} binding {k}")) for k, v in (scenario.get("bindings") or {}).items()
    )

    config = DeploymentConfig(
        deployment_id=deployment_id,
        name=str(gui_deployment.get("name", deployment_id)),
        description=gui_deployment.get("description"),
        gui=GuiInfo(name=str(gui.get("name", "")), description=gui.get("description")),
        deposits=deposits,
        fields=fields,
        network=network,
        orderbook=orderbook,
        deployer=deployer,
        inputs=_parse_io(data, order.get("inputs") or [], order_key, "inputs"),
        outputs=_parse_io(data, order.get("outputs") or [], order_key, "outputs"),
        scenario_bindings=scenario_bindings,
        body=body,
        tokens=tokens,
    )

    logger.info("Loaded deployment %s on network %s, orderbook %s", config, network.key, orderbook.address)
    return config
