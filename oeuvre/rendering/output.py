"""Mapping rendered documents to output paths."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import PurePosixPath

from ..core.errors import OutputCollisionError
from ..core.models import RenderedDocument

logger = logging.getLogger(__name__)


def output_path(document: RenderedDocument) -> PurePosixPath:
    """Compute where a document is written, relative to the output directory.

    A plain page keeps its path relative to its category root. An instance
    of a template page is written inside a directory named after the page,
    in a file named after its datarow: ``post.xml`` with datarow ``a``
    becomes ``post/a.xml``.
    """
    page = PurePosixPath(document.page)
    if document.datarow is None:
        return page
    return page.with_suffix("") / f"{document.datarow}{page.suffix}"


def describe(document: RenderedDocument) -> str:
    if document.datarow is None:
        return document.page
    return f"{document.page} (datarow {document.datarow})"


def map_outputs(documents: Iterable[RenderedDocument]) -> list[RenderedDocument]:
    """Assign an output path to every document.

    Raises:
        OutputCollisionError: if two documents map to the same path
    """
    claimed: dict[PurePosixPath, RenderedDocument] = {}
    mapped: list[RenderedDocument] = []
    for document in documents:
        path = output_path(document)
        previous = claimed.get(path)
        if previous is not None:
            raise OutputCollisionError(str(path), describe(previous), describe(document))
        claimed[path] = document
        mapped.append(document.model_copy(update={"output_path": path}))
        logger.debug(f"Mapped {describe(document)} → {path}")
    return mapped
