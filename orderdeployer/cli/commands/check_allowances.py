"""check-allowances command."""

from pathlib import Path
from typing import Optional

from tabulate import tabulate

from . import shared_options
from .app import app
from .bootstrap import create_gui
from ..log import setup_logging
from ...ethereum.token import from_native_units, to_native_units


@app.command()
def check_allowances(
    order_file: Path = shared_options.order_file,
    deployment: str = shared_options.deployment,
    state: Optional[str] = shared_options.state,
    owner: Optional[str] = shared_options.owner,
    json_rpc_url: Optional[str] = shared_options.json_rpc_url,
    log_level: Optional[str] = shared_options.log_level,
):
    """Display the orderbook allowances of the deposited tokens."""
    setup_logging(log_level)

    assert owner, "--owner is needed to check allowances"
    gui = create_gui(order_file, deployment, state, json_rpc_url)
    deposits = gui.get_deposits()
    allowances = gui.check_allowances(owner)

    rows = []
    for deposit, allowance in zip(deposits, allowances):
        decimals = gui.config.deposit_spec(deposit.token).token.decimals
        needed = to_native_units(deposit.amount, decimals)
        rows.append((
            deposit.token,
            allowance.token,
            deposit.amount,
            from_native_units(allowance.allowance, decimals),
            "yes" if allowance.allowance < needed else "no",
        ))

    print(f"Allowances of {owner} for orderbook {gui.config.orderbook.address}")
    print(tabulate(rows, headers=["Token", "Address", "Deposit", "Allowance", "Needs approval"], tablefmt="rounded_outline"))
