"""Order document splitting.

An order document is YAML front matter, a ``---`` separator line
and the expression body:

.. code-block:: text

    gui:
      name: Fixed limit
      ...
    tokens:
      ...
    ---
    #calculate-io
    _ _: 0 0;
    #handle-io
    :;
"""
import logging

import yaml

from orderdeployer.errors import ConfigError


logger = logging.getLogger(__name__)


#: Line separating the front matter from the body
FRONT_MATTER_SEPARATOR = "---"


class InvalidConfig(ConfigError):
    """The order document cannot be parsed or refers to missing sections."""


def split_document(source: str) -> tuple[str, str]:
    """Split the order document to the front matter and the body.

    Documents without the separator are all front matter.

    :return:
        Tuple (front matter, body)
    """
    assert isinstance(source, str), f"Expected str, got {type(source)}"
    lines = source.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        if line.strip() == FRONT_MATTER_SEPARATOR:
            return "".join(lines[:idx]), "".join(lines[idx + 1:])
    return source, ""


def parse_front_matter(source: str) -> dict:
    """Parse the YAML front matter of an order document.

    All scalar values are returned as strings.

    :raise InvalidConfig:
        YAML is broken or is not a mapping
    """
    front_matter, _ = split_document(source)
    try:
        # Every scalar stays a string as typed, e.g. unquoted 0x addresses
        # and 1.10 are not turned to numbers. Numbers are parsed where needed.
        data = yaml.load(front_matter, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise InvalidConfig(f"Could not parse order document front matter: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfig(f"Order document front matter must be a mapping, got {type(data).__name__}")

    logger.debug("Parsed front matter with sections %s", list(data.keys()))
    return data
