"""Define Typer app root."""

import shutil

import typer


# https://github.com/tiangolo/typer/issues/511#issuecomment-1331692007
app = typer.Typer(
    name="Order Deployer",
    context_settings={
        "max_content_width": shutil.get_terminal_size().columns
    },
    # Typer swallows nested exceptions
    # https://github.com/tiangolo/typer/issues/129
    pretty_exceptions_enable=False,
    pretty_exceptions_show_locals=False,
)
