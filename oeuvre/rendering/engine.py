"""Page rendering engine.

Rendering reads only from the registries handed to :class:`RenderEngine`,
which are never mutated, so every render pass is independent of the others.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from lxml import etree

from ..core.errors import (
    MissingContextError,
    RenderError,
    SlotCycleError,
    SnippetCycleError,
    UnresolvedDatasetError,
    UnresolvedSnippetError,
    UnresolvedTemplateError,
)
from ..core.models import Dataset, Page, RenderedDocument, Snippet, Template
from ..registry.identifiers import available
from ..registry.markup import (
    FRAGMENT,
    INCLUDE,
    NAME_ATTR,
    OPTIONAL_ATTR,
    PREFIX,
    SLOT,
    SNIPPET_ATTR,
    is_element,
    local_name,
)
from .interpolate import interpolate, interpolation_context

logger = logging.getLogger(__name__)

_MISSING = object()


def build_context(slot_values: Mapping[str, Any], data: Mapping[str, Any]) -> dict[str, Any]:
    """Merge page slot values with datarow fields.

    The merge is shallow: a datarow field replaces the page's value for the
    same key wholesale.
    """
    return {**slot_values, **data}


def lookup(context: Mapping[str, Any], name: str) -> Any:
    """Find ``name`` in the context, walking nested mappings on dots.

    Returns the module-level missing sentinel when nothing matches.
    """
    if name in context:
        return context[name]
    value: Any = context
    for part in name.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _append_text(target: etree._Element, text: str | None) -> None:
    if not text:
        return
    if len(target):
        last = target[-1]
        last.tail = (last.tail or "") + text
    else:
        target.text = (target.text or "") + text


class _Expansion:
    """Expands one template against one context.

    Cycle guards are the chains of snippet identifiers and slot names
    currently being expanded, passed down through the recursion.
    """

    def __init__(
        self,
        snippets: Mapping[str, Snippet],
        context: Mapping[str, Any],
        source: Path | str,
    ) -> None:
        self._snippets = snippets
        self._context = context
        self._variables = interpolation_context(context)
        self._source = source

    def element(
        self,
        src: etree._Element,
        parent: etree._Element | None = None,
        snippet_chain: tuple[str, ...] = (),
        slot_chain: tuple[str, ...] = (),
    ) -> etree._Element:
        """Copy ``src`` under ``parent`` without oeuvre attributes and expand its children.

        The copy carries the namespace declarations in scope at ``src``;
        declarations already made by an ancestor of ``parent`` are not
        repeated.
        """
        attrib = {
            key: interpolate(value, self._variables, self._source)
            for key, value in src.attrib.items()
            if not key.startswith(PREFIX)
        }
        if parent is None:
            result = etree.Element(src.tag, attrib, nsmap=src.nsmap)
        else:
            result = etree.SubElement(parent, src.tag, attrib, nsmap=src.nsmap)
        result.text = src.text
        for child in src:
            self._node(child, result, snippet_chain, slot_chain)
            _append_text(result, child.tail)
        return result

    def _node(
        self,
        node: etree._Element,
        target: etree._Element,
        snippet_chain: tuple[str, ...],
        slot_chain: tuple[str, ...],
    ) -> None:
        if not is_element(node):
            other = copy.copy(node)
            other.tail = None
            target.append(other)
            return

        name = local_name(node)
        if name == SLOT:
            self._slot(node, target, snippet_chain, slot_chain)
        elif name == INCLUDE:
            self._include(node, target, snippet_chain, slot_chain)
        elif name.startswith(PREFIX):
            raise RenderError(self._source, f"unexpected <{name}> element")
        else:
            self.element(node, target, snippet_chain, slot_chain)

    def _unwrap(
        self,
        fragment: etree._Element,
        target: etree._Element,
        snippet_chain: tuple[str, ...],
        slot_chain: tuple[str, ...],
    ) -> None:
        """Expand the children of ``fragment`` directly into ``target``."""
        _append_text(target, fragment.text)
        for child in fragment:
            self._node(child, target, snippet_chain, slot_chain)
            _append_text(target, child.tail)

    def _include(
        self,
        node: etree._Element,
        target: etree._Element,
        snippet_chain: tuple[str, ...],
        slot_chain: tuple[str, ...],
    ) -> None:
        name = node.get(SNIPPET_ATTR, "")
        if name in snippet_chain:
            raise SnippetCycleError(self._source, [*snippet_chain, name])
        snippet = self._snippets.get(name)
        if snippet is None:
            raise UnresolvedSnippetError(self._source, name, available(self._snippets))
        self._unwrap(snippet.element, target, (*snippet_chain, name), slot_chain)

    def _slot(
        self,
        node: etree._Element,
        target: etree._Element,
        snippet_chain: tuple[str, ...],
        slot_chain: tuple[str, ...],
    ) -> None:
        name = node.get(NAME_ATTR, "")
        if name in slot_chain:
            raise SlotCycleError(self._source, [*slot_chain, name])
        inner_chain = (*slot_chain, name)

        value = lookup(self._context, name)
        if value is _MISSING:
            # oeuvre-optional was validated when the markup was loaded
            if node.get(OPTIONAL_ATTR, "false").strip().lower() != "true":
                raise MissingContextError(self._source, name)
            self._unwrap(node, target, snippet_chain, inner_chain)
        elif isinstance(value, str):
            _append_text(target, value)
        elif isinstance(value, etree._Element):
            if local_name(value) == FRAGMENT:
                self._unwrap(value, target, snippet_chain, inner_chain)
            else:
                self.element(value, target, snippet_chain, inner_chain)
        else:
            raise RenderError(
                self._source,
                f"slot '{name}' resolves to a {type(value).__name__}, not to content",
            )


class RenderEngine:
    """Renders pages against read-only template, snippet and dataset registries."""

    def __init__(
        self,
        templates: Mapping[str, Template],
        snippets: Mapping[str, Snippet],
        datasets: Mapping[str, Dataset],
        *,
        doctype: str = "",
    ) -> None:
        self._templates = templates
        self._snippets = snippets
        self._datasets = datasets
        self._doctype = doctype

    def render_page(self, page: Page) -> list[RenderedDocument]:
        """Render a page once, or once per datarow for a template page.

        Args:
            page: Page to render

        Returns:
            Rendered documents in datarow order
        """
        template = self._resolve_template(page)

        if page.dataset is None:
            logger.debug(f"Rendering page {page.name} with template {template.identifier}")
            return [self._render_pass(page, template)]

        dataset = self._resolve_dataset(page, page.dataset)
        logger.debug(
            f"Rendering page {page.name} with template {template.identifier} "
            f"for {len(dataset.rows)} datarow(s) of {dataset.identifier}"
        )
        return [
            self._render_pass(page, template, row.identifier, row.data) for row in dataset.rows
        ]

    def render_all(self, pages: Iterable[Page]) -> list[RenderedDocument]:
        """Render every page, stopping at the first failure."""
        documents: list[RenderedDocument] = []
        for page in pages:
            documents.extend(self.render_page(page))
        logger.info(f"Rendered {len(documents)} document(s)")
        return documents

    def _resolve_template(self, page: Page) -> Template:
        template = self._templates.get(page.template)
        if template is None:
            raise UnresolvedTemplateError(
                page.source.path, page.template, available(self._templates)
            )
        return template

    def _resolve_dataset(self, page: Page, identifier: str) -> Dataset:
        dataset = self._datasets.get(identifier)
        if dataset is None:
            raise UnresolvedDatasetError(page.source.path, identifier, available(self._datasets))
        return dataset

    def _render_pass(
        self,
        page: Page,
        template: Template,
        datarow: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> RenderedDocument:
        source: Path | str = page.source.path
        if datarow is not None:
            source = f"{page.source.path} (datarow {datarow})"

        context = build_context(page.slot_values, data or {})
        root = _Expansion(self._snippets, context, source).element(template.element)
        text = etree.tostring(root, encoding="unicode")
        if self._doctype:
            text = f"{self._doctype}\n{text}"

        return RenderedDocument(page=page.name, datarow=datarow, text=text)
