"""serialize command."""

from pathlib import Path
from typing import List, Optional

from typer import Option

from . import shared_options
from .app import app
from .bootstrap import create_gui
from ..log import setup_logging


def _split_pair(value: str, what: str) -> tuple[str, str]:
    assert "=" in value, f"{what} must be given as key=value, got {value}"
    key, _, val = value.partition("=")
    return key.strip(), val.strip()


@app.command()
def serialize(
    order_file: Path = shared_options.order_file,
    deployment: str = shared_options.deployment,
    state: Optional[str] = shared_options.state,
    field: List[str] = Option([], "--field", help="Field value as binding=value. Can be given multiple times."),
    deposit: List[str] = Option([], "--deposit", help="Deposit as token=amount. Can be given multiple times."),
    remove_deposit: List[str] = Option([], "--remove-deposit", help="Token key of a deposit to remove. Can be given multiple times."),
    log_level: Optional[str] = shared_options.log_level,
):
    """Create or update a serialised session.

    Prints the new serialised session to stdout.
    """
    setup_logging(log_level)

    gui = create_gui(order_file, deployment, state)

    gui.save_field_values([_split_pair(f, "Field") for f in field])

    for d in deposit:
        token, amount = _split_pair(d, "Deposit")
        gui.save_deposit(token, amount)

    for token in remove_deposit:
        gui.remove_deposit(token)

    print(gui.serialize_state())
