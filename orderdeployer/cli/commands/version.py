"""version CLI command."""

from importlib.metadata import PackageNotFoundError, version as package_version

from .app import app


@app.command()
def version():
    """Print out the version information."""
    try:
        print(f"Version: {package_version('orderdeployer')}")
    except PackageNotFoundError:
        print("Version information is only available when the package is installed.")
