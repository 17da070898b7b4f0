"""Oeuvre exception hierarchy.

Every stage of a build raises a subclass of :class:`OeuvreError` and the
build aborts on the first one. Messages name the offending file and, where
there is one, the identifier involved.
"""

from __future__ import annotations

from pathlib import Path


class OeuvreError(Exception):
    """Base for all oeuvre build errors."""


class ConfigurationError(OeuvreError):
    """Raised when the site configuration is missing or invalid."""


class DuplicateIdentifierError(ConfigurationError):
    """Raised when two files in one category resolve to the same identifier."""

    def __init__(self, category: str, identifier: str, first: Path, second: Path) -> None:
        self.category = category
        self.identifier = identifier
        self.paths = (first, second)
        super().__init__(
            f"{category.capitalize()} identifier '{identifier}' is used by both "
            f"{first} and {second}"
        )


class DiscoveryError(OeuvreError):
    """Raised when the input directory cannot be searched."""


class ParseError(OeuvreError):
    """Raised when a template, snippet, dataset, datarow or page is malformed."""

    def __init__(
        self,
        path: Path | str,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.path = Path(path)
        self.line = line
        self.column = column
        self.message = message
        location = str(self.path)
        if line is not None:
            location = f"{location}:{line}"
            if column is not None:
                location = f"{location}:{column}"
        super().__init__(f"{location}: {message}")


class DataAssociationError(OeuvreError):
    """Raised when a datarow cannot be assigned to exactly one dataset."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class OrphanDatarowError(DataAssociationError):
    """The datarow lies outside every dataset directory."""

    def __init__(self, path: Path) -> None:
        super().__init__(path, "datarow does not belong to any dataset directory")


class AmbiguousDatarowError(DataAssociationError):
    """The datarow lies inside more than one dataset directory."""

    def __init__(self, path: Path, datasets: list[str]) -> None:
        self.datasets = datasets
        super().__init__(
            path, f"datarow belongs to more than one dataset: {', '.join(datasets)}"
        )


class ResolutionError(OeuvreError):
    """Raised when a reference names an identifier that does not exist."""

    kind = "reference"

    def __init__(self, source: Path | str, identifier: str, available: list[str]) -> None:
        self.source = source
        self.identifier = identifier
        self.available = available
        known = ", ".join(available) or "none"
        super().__init__(
            f"{source} requested {self.kind} '{identifier}', which does not exist. "
            f"Available: {known}"
        )


class UnresolvedTemplateError(ResolutionError):
    kind = "template"


class UnresolvedDatasetError(ResolutionError):
    kind = "dataset"


class UnresolvedSnippetError(ResolutionError):
    kind = "snippet"


class RenderError(OeuvreError):
    """Raised when a page cannot be rendered with the context it was given."""

    def __init__(self, source: Path | str, message: str) -> None:
        self.source = source
        super().__init__(f"Failed to render {source}: {message}")


class MissingContextError(RenderError):
    """A required slot or interpolated key has no value in the context."""

    def __init__(self, source: Path | str, key: str, detail: str = "") -> None:
        self.key = key
        message = f"no value for required key '{key}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(source, message)


class SnippetCycleError(RenderError):
    """Snippets include each other in a loop."""

    def __init__(self, source: Path | str, chain: list[str]) -> None:
        self.chain = chain
        super().__init__(source, f"snippet reference cycle: {' -> '.join(chain)}")


class SlotCycleError(RenderError):
    """A slot value refers back to the slot it fills."""

    def __init__(self, source: Path | str, chain: list[str]) -> None:
        self.chain = chain
        super().__init__(source, f"slot reference cycle: {' -> '.join(chain)}")


class OutputCollisionError(OeuvreError):
    """Two rendered documents map to the same output path."""

    def __init__(self, output_path: str, first: str, second: str) -> None:
        self.output_path = output_path
        self.sources = (first, second)
        super().__init__(
            f"Output path {output_path} is produced by both {first} and {second}"
        )


class WriteError(OeuvreError):
    """Raised when the rendered site cannot be written to disk."""
