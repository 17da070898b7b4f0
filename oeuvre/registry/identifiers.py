"""Identifier bookkeeping shared by the registries."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, TypeVar

from ..core.errors import DuplicateIdentifierError


class _Identified(Protocol):
    identifier: str
    source: Path


T = TypeVar("T", bound=_Identified)


def add_unique(category: str, registry: dict[str, T], item: T) -> None:
    """Add ``item`` to ``registry``, rejecting identifier collisions."""
    existing = registry.get(item.identifier)
    if existing is not None:
        raise DuplicateIdentifierError(category, item.identifier, existing.source, item.source)
    registry[item.identifier] = item


def available(registry: Mapping[str, object]) -> list[str]:
    """Sorted identifiers, for error messages."""
    return sorted(registry)
