"""Shared setup for commands."""

import logging
from pathlib import Path
from typing import Optional

from ...deployment.gui import DeploymentGui
from ...ethereum.rpc import Web3ReadableClient


logger = logging.getLogger(__name__)


def create_gui(
    order_file: Path,
    deployment: str,
    state: Optional[str] = None,
    json_rpc_url: Optional[str] = None,
) -> DeploymentGui:
    """Load the deployment and restore the session if given."""
    assert order_file.exists(), f"Order file does not exist: {order_file}"
    source = order_file.read_text()

    client = Web3ReadableClient.from_url(json_rpc_url) if json_rpc_url else None
    gui = DeploymentGui.init(source, deployment, client=client)

    if state:
        gui.deserialize_state(state)
        logger.info("Restored session %s", gui.state)

    return gui
