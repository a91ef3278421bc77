"""Command-line entry point build on the top of Typer."""

from .commands.app import app
from .commands.calldata import calldata
from .commands.check_allowances import check_allowances
from .commands.serialize import serialize
from .commands.show_deployment import show_deployment
from .commands.version import version

# Dummy export commands even though they are already registered
# to make the linter happy
__all__ = [
    app, calldata, check_allowances, serialize, show_deployment, version,
]
