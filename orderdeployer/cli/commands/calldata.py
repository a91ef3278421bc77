"""calldata command."""

from pathlib import Path
from typing import Optional

from typer import Option

from . import shared_options
from .app import app
from .bootstrap import create_gui
from ..log import setup_logging


@app.command()
def calldata(
    order_file: Path = shared_options.order_file,
    deployment: str = shared_options.deployment,
    state: Optional[str] = shared_options.state,
    owner: Optional[str] = shared_options.owner,
    json_rpc_url: Optional[str] = shared_options.json_rpc_url,
    add_order: bool = Option(True, envvar="ADD_ORDER", help="Generate the deposit and add order multicall. Needs JSON-RPC access to parse the expression."),
    log_level: Optional[str] = shared_options.log_level,
):
    """Print transaction calldata for deploying the order.

    - Approvals, if --owner is given. Needs JSON-RPC access to read the allowances.

    - Deposits

    - Deposit and add order multicall
    """
    setup_logging(log_level)

    gui = create_gui(order_file, deployment, state, json_rpc_url)

    if owner:
        print("Approvals")
        for c in gui.generate_approval_calldatas(owner):
            print(f"  {c.label} to {c.target}: {c.hex()}")

    print("Deposits")
    for c in gui.generate_deposit_calldatas():
        print(f"  {c.label} to {c.target}: {c.hex()}")

    if add_order:
        multicall = gui.generate_deposit_and_add_order_calldatas()
        print("Deposit and add order")
        print(f"  {multicall.label} to {multicall.target}: {multicall.hex()}")
