"""Template registry: documents with fillable slots, keyed by identifier."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ..core.errors import ParseError
from ..core.models import SourceFile, Template
from .identifiers import add_unique
from .markup import is_directive, load_xml, local_name, scan_directives

logger = logging.getLogger(__name__)


def load_template(source: SourceFile) -> Template:
    """Load a single template file.

    Snippet references are recorded here and checked once every snippet is
    loaded, so snippets and templates can be authored in any order.

    Raises:
        ParseError: on malformed markup or a slot declared twice
    """
    element = load_xml(source.path)
    if is_directive(element):
        raise ParseError(source.path, f"template root cannot be an <{local_name(element)}> element")
    directives = scan_directives(element, source.path, unique_slots=True)
    return Template(
        identifier=source.identifier,
        source=source.path,
        element=element,
        slots=directives.slots,
        references=directives.references,
    )


def load_templates(sources: Iterable[SourceFile]) -> Mapping[str, Template]:
    """Load every template file, failing on the first bad one.

    Returns:
        Read-only mapping of identifier to template
    """
    templates: dict[str, Template] = {}
    for source in sources:
        logger.debug(f"- Reading {source.path}")
        template = load_template(source)
        add_unique("template", templates, template)
        logger.debug(
            f"-- Loaded template {template.identifier} from {source.path} "
            f"(slots: {', '.join(template.slots) or 'none'})"
        )
    logger.info(f"Loaded {len(templates)} template(s)")
    return MappingProxyType(templates)
