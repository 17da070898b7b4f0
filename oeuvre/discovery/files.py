"""Glob-based discovery of site input files."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from ..core.errors import DiscoveryError
from ..core.models import SourceFile

logger = logging.getLogger(__name__)

CATEGORIES = ("templates", "snippets", "datasets", "datarows", "assets", "pages")

_WILDCARDS = frozenset("*?[")


def pattern_root(pattern: str) -> PurePosixPath:
    """Return the leading directories of ``pattern`` that contain no wildcard.

    ``templates/**/*.xml`` has root ``templates``; ``**/*.xml`` has the
    empty root. A pattern without any wildcard names a single file, whose
    root is its parent directory.
    """
    parts = PurePosixPath(pattern).parts
    literal: list[str] = []
    for part in parts[:-1]:
        if _WILDCARDS.intersection(part):
            break
        literal.append(part)
    return PurePosixPath(*literal)


def check_input_dir(base: Path) -> None:
    """Ensure the input directory exists and can be listed."""
    if not base.is_dir():
        raise DiscoveryError(f"Input directory {base} does not exist or is not a directory")
    if not os.access(base, os.R_OK | os.X_OK):
        raise DiscoveryError(f"Input directory {base} is not readable")


def _glob(base: Path, pattern: str) -> list[Path]:
    pure = PurePosixPath(pattern)
    if not pattern or pure.is_absolute() or ".." in pure.parts:
        raise DiscoveryError(f"{pattern!r} is not a valid pattern relative to {base}")
    try:
        return [path for path in base.glob(pattern) if path.is_file()]
    except (ValueError, OSError) as e:
        raise DiscoveryError(f"{pattern!r} could not be expanded. Cause: {e}") from e


def expand_exclusions(base: Path, patterns: Iterable[str]) -> set[Path]:
    """Expand exclusion patterns into the concrete set of excluded files."""
    excluded: set[Path] = set()
    for pattern in patterns:
        excluded.update(_glob(base, pattern))
    return excluded


def expand_patterns(
    base: Path, patterns: Iterable[str], excluded: set[Path] | None = None
) -> list[SourceFile]:
    """Expand glob patterns into sorted, de-duplicated source files.

    A file matched by several patterns keeps the root of the first one.

    Args:
        base: Input directory the patterns are relative to
        patterns: Glob patterns, in priority order
        excluded: Files to leave out

    Returns:
        Source files sorted by path
    """
    excluded = excluded or set()
    found: dict[Path, SourceFile] = {}
    for pattern in patterns:
        root = base / pattern_root(pattern)
        for path in _glob(base, pattern):
            if path in excluded or path in found:
                continue
            found[path] = SourceFile(path=path, root=root, base=base)
    return [found[path] for path in sorted(found)]


def discover(
    base: Path,
    categories: Mapping[str, Iterable[str]],
    exclude: Iterable[str] = (),
) -> dict[str, list[SourceFile]]:
    """Discover the files of each category below ``base``.

    Categories are independent: one file may appear in several of them.

    Args:
        base: Input directory
        categories: Glob patterns per category name
        exclude: Patterns whose matches are dropped from every category

    Returns:
        Source files per category, each list sorted by path
    """
    base = base.resolve()
    check_input_dir(base)
    excluded = expand_exclusions(base, exclude)
    logger.debug(f"Excluding {len(excluded)} file(s)")

    discovered: dict[str, list[SourceFile]] = {}
    for category, patterns in categories.items():
        patterns = list(patterns)
        logger.info(f"Looking for {category} {patterns}")
        discovered[category] = expand_patterns(base, patterns, excluded)
        logger.debug(f"Found {len(discovered[category])} {category} file(s)")
    return discovered
