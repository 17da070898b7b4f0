"""Shared XML loading and directive scanning for all input categories.

Directives are matched on the local name of an element, so templates may
declare a default namespace (XHTML, SVG) and still use ``<oeuvre-slot>``.
"""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple

from lxml import etree

from ..core.errors import ParseError

PREFIX = "oeuvre-"
SLOT = "oeuvre-slot"
INCLUDE = "oeuvre-include"
FRAGMENT = "oeuvre-fragment"

NAME_ATTR = "oeuvre-name"
SNIPPET_ATTR = "oeuvre-snippet"
OPTIONAL_ATTR = "oeuvre-optional"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


class Directives(NamedTuple):
    """Slots and snippet references found in a markup tree."""

    slots: tuple[str, ...]
    references: tuple[str, ...]


def parse_bool(value: str, path: Path, attr: str) -> bool:
    """Parse an oeuvre boolean attribute, which must be ``true`` or ``false``."""
    value_lower = value.strip().lower()
    if value_lower == "true":
        return True
    if value_lower == "false":
        return False
    raise ParseError(path, f"{attr} must be 'true' or 'false', got {value!r}")


def parse_xml(data: str | bytes, path: Path) -> etree._Element:
    """Parse an XML document, keeping comments and namespace declarations."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, _PARSER)
    except etree.XMLSyntaxError as e:
        line, column = e.position
        raise ParseError(path, f"could not be parsed as xml. Cause: {e.msg}", line=line, column=column) from e


def load_xml(path: Path) -> etree._Element:
    """Load and parse the XML document at ``path``.

    The file is read as bytes so an encoding named in its XML declaration
    is honoured.

    Raises:
        ParseError: if the file cannot be read or is not well-formed
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ParseError(path, f"could not be opened. Cause: {e}") from e
    return parse_xml(data, path)


def is_element(node: etree._Element) -> bool:
    """False for comments, processing instructions and entities."""
    return isinstance(node.tag, str)


def local_name(node: etree._Element) -> str:
    """Tag of an element without its ``{namespace}`` part."""
    return node.tag.rpartition("}")[2]


def is_directive(node: etree._Element) -> bool:
    return is_element(node) and local_name(node).startswith(PREFIX)


def scan_directives(
    element: etree._Element,
    path: Path,
    *,
    unique_slots: bool = False,
    allow_fragments: bool = False,
) -> Directives:
    """Collect slot names and snippet references below ``element``.

    Args:
        element: Root of the tree to scan (the root itself included)
        path: Source file, for error messages
        unique_slots: Reject a slot name that appears twice
        allow_fragments: Accept ``oeuvre-fragment`` elements

    Returns:
        Slots and snippet references in document order
    """
    slots: list[str] = []
    references: list[str] = []

    for node in element.iter():
        if not is_directive(node):
            continue

        name = local_name(node)
        if name == SLOT:
            slot = node.get(NAME_ATTR)
            if not slot:
                raise ParseError(path, f"<{SLOT}> requires an {NAME_ATTR} attribute", line=node.sourceline)
            if unique_slots and slot in slots:
                raise ParseError(path, f"slot '{slot}' is declared more than once", line=node.sourceline)
            if slot not in slots:
                slots.append(slot)
            parse_bool(node.get(OPTIONAL_ATTR, "false"), path, OPTIONAL_ATTR)
        elif name == INCLUDE:
            target = node.get(SNIPPET_ATTR)
            if not target:
                raise ParseError(path, f"<{INCLUDE}> requires an {SNIPPET_ATTR} attribute", line=node.sourceline)
            if target not in references:
                references.append(target)
        elif name == FRAGMENT and allow_fragments:
            continue
        else:
            raise ParseError(path, f"unknown oeuvre element <{name}>", line=node.sourceline)

    return Directives(tuple(slots), tuple(references))
