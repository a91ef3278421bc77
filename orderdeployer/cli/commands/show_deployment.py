"""show-deployment command."""

from pathlib import Path
from typing import Optional

from tabulate import tabulate

from . import shared_options
from .app import app
from .bootstrap import create_gui
from ..log import setup_logging


@app.command()
def show_deployment(
    order_file: Path = shared_options.order_file,
    deployment: str = shared_options.deployment,
    state: Optional[str] = shared_options.state,
    log_level: Optional[str] = shared_options.log_level,
):
    """Display the configurable fields and deposits of a deployment.

    - Does not read any chain state

    - If a serialised session is given, show its values
    """
    setup_logging(log_level)

    gui = create_gui(order_file, deployment, state)
    config = gui.config
    values = {f.binding: f.value for f in gui.get_all_field_values()}
    deposits = {d.token: d.amount for d in gui.get_deposits()}

    print(f"Deployment {config.deployment_id}: {config.name}")
    if config.description:
        print(config.description)
    print(f"Network {config.network.key}, chain id {config.network.chain_id}")
    print(f"Orderbook {config.orderbook.address}")
    print("")

    print("Fields")
    rows = [
        (
            f.binding,
            f.name,
            f.min if f.min is not None else "-",
            ", ".join(p.value for p in f.presets),
            values.get(f.binding, "-"),
        )
        for f in config.fields
    ]
    print(tabulate(rows, headers=["Binding", "Name", "Min", "Presets", "Value"], tablefmt="rounded_outline"))
    print("")

    print("Deposits")
    rows = [
        (
            d.key,
            d.token.symbol or "-",
            d.token.address,
            d.token.decimals,
            ", ".join(d.presets),
            deposits.get(d.key, "-"),
        )
        for d in config.deposits
    ]
    print(tabulate(rows, headers=["Token", "Symbol", "Address", "Decimals", "Presets", "Amount"], tablefmt="rounded_outline"))
