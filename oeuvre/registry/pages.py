"""Page loading."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lxml import etree

from ..core.errors import ParseError
from ..core.models import Page, SourceFile
from .markup import FRAGMENT, is_element, load_xml, local_name, scan_directives

logger = logging.getLogger(__name__)

TEMPLATE_ATTR = "oeuvre-template"
DATASET_ATTR = "oeuvre-dataset"
SLOT_ATTR = "oeuvre-slot"


def parse_page(element: etree._Element, source: SourceFile) -> Page:
    """Build a Page from its root element.

    Every child carrying ``oeuvre-slot="a, b"`` supplies the value of each
    listed slot. Values may themselves contain slots and includes.
    """
    template = element.get(TEMPLATE_ATTR)
    if not template:
        raise ParseError(source.path, f"page requires a root element with an {TEMPLATE_ATTR} attribute")

    dataset = element.get(DATASET_ATTR) or None

    slot_values: dict[str, etree._Element] = {}
    for child in element:
        if not is_element(child):
            continue
        slot_names = child.get(SLOT_ATTR)
        if slot_names is None:
            continue
        scan_directives(child, source.path, allow_fragments=local_name(child) == FRAGMENT)
        for slot_name in slot_names.split(","):
            slot_name = slot_name.strip()
            if not slot_name:
                raise ParseError(source.path, f"empty slot name in {SLOT_ATTR}={slot_names!r}")
            if slot_name in slot_values:
                raise ParseError(source.path, f"slot '{slot_name}' is given more than once")
            slot_values[slot_name] = child

    return Page(source=source, template=template, dataset=dataset, slot_values=slot_values)


def load_page(source: SourceFile) -> Page:
    return parse_page(load_xml(source.path), source)


def load_pages(sources: Iterable[SourceFile]) -> list[Page]:
    """Load every page file, failing on the first bad one."""
    pages = []
    for source in sources:
        logger.debug(f"- Loading page {source.path}")
        pages.append(load_page(source))
    logger.info(f"Loaded {len(pages)} page(s)")
    return pages
