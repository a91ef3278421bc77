"""One deployment session for a frontend.

Ties the config, the session state, the state codec, allowance checks
and calldata generation together behind the operations a deployment
user interface needs.

.. code-block:: python

    gui = DeploymentGui.init(order_document, "some-deployment")
    gui.save_field_value("max-spread", "0.01")
    gui.save_deposit("usdc", "2000")

    approvals = gui.generate_approval_calldatas(owner)
    multicall = gui.generate_deposit_and_add_order_calldatas()
"""
import logging
from dataclasses import replace
from typing import Iterable, Optional

from orderdeployer.deployment.config import DepositSpec, DeploymentConfig, FieldSpec, GuiInfo, load
from orderdeployer.ethereum.add_order import (
    AddOrderCalldata,
    build_add_order_calldata,
    generate_deposit_and_add_order_calldatas,
)
from orderdeployer.ethereum.allowance import AllowanceResult, check_allowances
from orderdeployer.ethereum.calldata import (
    ApprovalCalldata,
    DepositCalldata,
    MulticallCalldata,
    generate_approval_calldatas,
    generate_deposit_calldatas,
)
from orderdeployer.ethereum.rpc import ReadableClient, Web3ReadableClient
from orderdeployer.state import codec
from orderdeployer.state.identifier import TokenInfo
from orderdeployer.state.session import DepositEntry, FieldValue, SessionState
from orderdeployer.state.types import BindingId, JSONHexAddress, TokenKey


logger = logging.getLogger(__name__)


class DeploymentGui:
    """Deployment session with its config and chain access."""

    def __init__(
        self,
        config: DeploymentConfig,
        client: Optional[ReadableClient] = None,
    ):
        """
        :param config:
            Loaded deployment

        :param client:
            JSON-RPC reader. If not given, connect to the deployment network RPC
            on the first chain read.
        """
        self.config = config
        self.state = SessionState(config)
        self._client = client

    def __repr__(self):
        return f"<DeploymentGui {self.config.deployment_id} {self.state}>"

    @classmethod
    def init(
        cls,
        source: str,
        deployment_id: str,
        client: Optional[ReadableClient] = None,
    ) -> "DeploymentGui":
        """Load a deployment from an order document and start an empty session."""
        return cls(load(source, deployment_id), client=client)

    @property
    def client(self) -> ReadableClient:
        if self._client is None:
            self._client = Web3ReadableClient.from_url(self.config.network.rpc)
        return self._client

    def get_gui_config(self) -> GuiInfo:
        return self.config.gui

    def get_token_infos(self) -> list[TokenInfo]:
        """Tokens of the order inputs and outputs."""
        seen = {}
        for io in self.config.inputs + self.config.outputs:
            seen.setdefault(io.token.key, io.token)
        return list(seen.values())

    def get_field_definition(self, binding: BindingId) -> FieldSpec:
        return self.config.field_spec(binding)

    def get_all_field_definitions(self) -> list[FieldSpec]:
        return self.config.list_field_specs()

    def get_deposit_definitions(self) -> list[DepositSpec]:
        return self.config.list_deposit_specs()

    def save_field_value(self, binding: BindingId, value: str):
        self.state.set_field_value(binding, value)

    def save_field_values(self, values: Iterable[tuple[BindingId, str]]):
        self.state.set_field_values(values)

    def get_field_value(self, binding: BindingId) -> str:
        return self.state.get_field_value(binding)

    def get_all_field_values(self) -> list[FieldValue]:
        return self.state.list_field_values()

    def save_deposit(self, token: TokenKey, amount: str):
        self.state.set_deposit(token, amount)

    def remove_deposit(self, token: TokenKey):
        self.state.remove_deposit(token)

    def get_deposits(self) -> list[DepositEntry]:
        return self.state.list_deposits()

    def clear_state(self):
        self.state.clear()

    def serialize_state(self) -> str:
        return codec.serialize(self.state, self.config)

    def deserialize_state(self, blob: str):
        """Replace the session with a serialised one.

        The current session is kept if decoding fails.
        """
        self.state = codec.deserialize(blob, self.config)

    def check_allowances(self, owner: JSONHexAddress) -> list[AllowanceResult]:
        """Current allowances of the deposited tokens for the orderbook.

        Token addresses are read from the config, the same ones approvals and deposits use.
        """
        deposits = [
            replace(d, address=self.config.deposit_spec(d.token).token.address)
            for d in self.state.list_deposits()
        ]
        return check_allowances(
            self.client,
            owner,
            deposits,
            self.config.orderbook.address,
        )

    def generate_approval_calldatas(self, owner: JSONHexAddress) -> list[ApprovalCalldata]:
        """Approvals needed before depositing, reads allowances first."""
        allowances = self.check_allowances(owner)
        return generate_approval_calldatas(self.config, self.state, allowances)

    def generate_deposit_calldatas(self) -> list[DepositCalldata]:
        return generate_deposit_calldatas(self.config, self.state)

    def generate_add_order_calldata(self, nonce: Optional[bytes] = None, secret: Optional[bytes] = None) -> AddOrderCalldata:
        return build_add_order_calldata(self.client, self.config, self.state, nonce=nonce, secret=secret)

    def generate_deposit_and_add_order_calldatas(
        self,
        nonce: Optional[bytes] = None,
        secret: Optional[bytes] = None,
    ) -> MulticallCalldata:
        return generate_deposit_and_add_order_calldatas(self.client, self.config, self.state, nonce=nonce, secret=secret)
