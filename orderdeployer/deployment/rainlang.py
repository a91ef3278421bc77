"""Compose expression source from the order document body.

The body of an order document is a list of ``#name`` sections.
Entrypoint sections hold the expression source,
other sections declare bindings the entrypoints refer to:

.. code-block:: text

    #max-amount 1000
    #price !The price is supplied by the user
    #calculate-io
    _ _: max-amount price;
    #handle-io
    :;

Composing replaces binding references with their values and
lays out the entrypoints in order. This is not a compiler:
the parser contract of the deployer turns the composed text to bytecode.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

import cbor2

from orderdeployer.errors import ConfigError


logger = logging.getLogger(__name__)


#: Entrypoints of an order, in the order the orderbook calls them
ORDER_ENTRYPOINTS = ("calculate-io", "handle-io")

#: Entrypoints of the task run after the order is added
ADD_ORDER_POST_TASK_ENTRYPOINTS = ("handle-add-order",)

#: Prefix of every Rain meta document
RAIN_META_DOCUMENT_MAGIC = bytes.fromhex("ff0a89c674ee7874")

#: Magic number of a Rainlang source meta item
RAINLANG_SOURCE_V1_MAGIC = 0xff13109e41336ff2

#: Content type of the meta item payload
META_CONTENT_TYPE = "application/octet-stream"


class ComposeError(ConfigError):
    """The body lacks an entrypoint or a binding has no value."""


@dataclass(frozen=True)
class BodySection:
    """One ``#name`` section of the body."""

    name: str

    #: Section content, stripped
    text: str

    #: Set when the binding is declared with ``!message`` and must be supplied
    elided_message: Optional[str] = None

    def is_elided(self) -> bool:
        return self.elided_message is not None


def parse_body(body: str) -> dict[str, BodySection]:
    """Parse the body to sections.

    Text before the first section header is ignored.

    :return:
        Section name -> section, in the document order
    """
    sections = {}
    current_name = None
    current_lines = []

    def _flush():
        if current_name is None:
            return
        text = "\n".join(current_lines).strip()
        elided = text[1:].strip() if text.startswith("!") else None
        sections[current_name] = BodySection(current_name, text, elided)

    for line in body.splitlines():
        if line.startswith("#"):
            _flush()
            header = line[1:].strip()
            if not header:
                raise ComposeError(f"Empty section header in order body: {line!r}")
            parts = header.split(maxsplit=1)
            current_name = parts[0]
            current_lines = [parts[1]] if len(parts) > 1 else []
        elif current_name is not None:
            current_lines.append(line)

    _flush()
    return sections


def _bindings_pattern(names: Iterable[str]) -> Optional[re.Pattern]:
    """Match any of the binding names as a whole word."""
    # Longest first so that a name is not cut short by its prefix
    names = sorted(names, key=len, reverse=True)
    if not names:
        return None
    alternation = "|".join(re.escape(n) for n in names)
    return re.compile(rf"(?<![\w.-])({alternation})(?![\w-])")


def compose_rainlang(
    body: str,
    entrypoints: Iterable[str],
    bindings: Optional[dict[str, str]] = None,
) -> str:
    """Compose the source text for the given entrypoints.

    :param body:
        Order document body, everything after the ``---`` separator

    :param entrypoints:
        Names of the entrypoint sections, in the call order

    :param bindings:
        Binding values overriding the values declared in the body.

        Scenario bindings and the user field values.

    :return:
        Source text where every entrypoint is prefixed with ``/* {index}. {name} */``

    :raise ComposeError:
        An entrypoint is missing or a referenced binding is elided
    """
    sections = parse_body(body)
    entrypoints = list(entrypoints)

    values: dict[str, Optional[str]] = {}
    for name, section in sections.items():
        if name in entrypoints:
            continue
        values[name] = None if section.is_elided() else section.text

    for name, value in (bindings or {}).items():
        values[name] = str(value)

    pattern = _bindings_pattern(values.keys())

    def _substitute(match: re.Match) -> str:
        binding = match.group(1)
        value = values[binding]
        if value is None:
            raise ComposeError(f"Binding {binding} is elided: {sections[binding].elided_message}")
        return value

    parts = []
    for idx, name in enumerate(entrypoints):
        section = sections.get(name)
        if section is None:
            raise ComposeError(f"Entrypoint not found in order body: {name}")

        # One pass, so substituted values are never substituted again
        text = pattern.sub(_substitute, section.text) if pattern else section.text

        parts.append(f"/* {idx}. {name} */ \n{text}")

    rainlang = "\n\n".join(parts)
    logger.debug("Composed %d entrypoints, %d chars", len(parts), len(rainlang))
    return rainlang


def has_entrypoints(body: str, entrypoints: Iterable[str]) -> bool:
    """Does the body declare all given entrypoints."""
    sections = parse_body(body)
    return all(name in sections for name in entrypoints)


def build_order_meta(rainlang: str) -> bytes:
    """Build the Rain meta document stored alongside the order.

    Magic prefix followed by a CBOR map of the source, its magic number and content type.
    """
    item = {
        0: rainlang.encode("utf-8"),
        1: RAINLANG_SOURCE_V1_MAGIC,
        2: META_CONTENT_TYPE,
    }
    return RAIN_META_DOCUMENT_MAGIC + cbor2.dumps(item)
