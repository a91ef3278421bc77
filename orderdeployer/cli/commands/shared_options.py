"""Common Typer options shared across command line commands."""

from typer import Option


order_file = Option(..., envvar="ORDER_FILE", help="Order document: YAML front matter with the gui section, --- separator and the expression body")

deployment = Option(..., envvar="DEPLOYMENT", help="Deployment id in the order document deployments section")

state = Option(None, envvar="STATE", help="Serialised session state as produced by the serialize command. If not given, start from an empty session.")

owner = Option(None, envvar="OWNER", help="Address that makes the deposits and owns the order")

json_rpc_url = Option(None, envvar="JSON_RPC_URL", help="JSON-RPC endpoint. If not given, use the rpc of the deployment network in the order document.")

log_level = Option(None, envvar="LOG_LEVEL", help="The Python default logging level. The default is 'info'. Set 'disabled' in testing.")
