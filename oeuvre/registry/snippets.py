"""Snippet registry: reusable fragments keyed by identifier."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ..core.errors import UnresolvedSnippetError
from ..core.models import Snippet, SourceFile, Template
from .identifiers import add_unique, available
from .markup import load_xml, scan_directives

logger = logging.getLogger(__name__)


def load_snippet(source: SourceFile) -> Snippet:
    """Load a single snippet file.

    The snippet's content is the children of its root element; the root
    itself is only a wrapper and never reaches the output.
    """
    element = load_xml(source.path)
    directives = scan_directives(element, source.path)
    return Snippet(
        identifier=source.identifier,
        source=source.path,
        element=element,
        references=directives.references,
    )


def load_snippets(sources: Iterable[SourceFile]) -> Mapping[str, Snippet]:
    """Load every snippet file, failing on the first bad one.

    Returns:
        Read-only mapping of identifier to snippet
    """
    snippets: dict[str, Snippet] = {}
    for source in sources:
        logger.debug(f"- Reading {source.path}")
        snippet = load_snippet(source)
        add_unique("snippet", snippets, snippet)
        logger.debug(f"-- Loaded snippet {snippet.identifier} from {source.path}")
    logger.info(f"Loaded {len(snippets)} snippet(s)")
    return MappingProxyType(snippets)


def check_includes(
    templates: Mapping[str, Template], snippets: Mapping[str, Snippet]
) -> None:
    """Ensure every include in a template or snippet names a known snippet.

    Cycles are left to the render engine, which sees the full include chain.

    Raises:
        UnresolvedSnippetError: for the first include with no matching snippet
    """
    for item in (*templates.values(), *snippets.values()):
        for reference in item.references:
            if reference not in snippets:
                raise UnresolvedSnippetError(item.source, reference, available(snippets))
    logger.debug("- All snippet includes resolve")
