"""Domain models for site configuration, registries and rendered output."""

from __future__ import annotations

from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any
from lxml.etree import _Element as Element

from pydantic import BaseModel, ConfigDict, Field


class SiteConfig(BaseModel):
    """Configuration for a site build, as read from ``site.toml``.

    ``dir`` and ``output_dir`` are relative to the directory holding the
    config file until :func:`oeuvre.core.config.load_config` resolves them.
    Every other field is a list of glob patterns relative to ``dir``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dir: Path = Field(default=Path("./"), description="Input directory")
    output_dir: Path = Field(default=Path("output/"), description="Output directory")
    exclude: list[str] = Field(default_factory=list, description="Excluded paths")
    templates: list[str] = Field(
        default_factory=lambda: ["templates/**/*.xml"], description="Template files"
    )
    snippets: list[str] = Field(
        default_factory=lambda: ["snippets/**/*.xml"], description="Snippet files"
    )
    datasets: list[str] = Field(
        default_factory=lambda: ["data/*.xml"], description="Dataset files"
    )
    datarows: list[str] = Field(
        default_factory=lambda: ["data/*/**/*.xml"], description="Datarow files"
    )
    pages: list[str] = Field(default_factory=lambda: ["**/*.xml"], description="Page files")
    assets: list[str] = Field(
        default_factory=lambda: ["assets/**/*"], description="Static files copied verbatim"
    )
    doctype: str = Field(default="", description="Line written before every page")


class SourceFile(BaseModel):
    """A discovered input file and the category root it was found under."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute file path")
    root: Path = Field(..., description="Wildcard-free root of the matching pattern")
    base: Path = Field(..., description="Input directory")

    @property
    def relative(self) -> PurePosixPath:
        """Path relative to the category root."""
        return PurePosixPath(self.path.relative_to(self.root).as_posix())

    @property
    def input_relative(self) -> PurePosixPath:
        """Path relative to the input directory."""
        return PurePosixPath(self.path.relative_to(self.base).as_posix())

    @property
    def identifier(self) -> str:
        return str(self.relative.with_suffix(""))


class Snippet(BaseModel):
    """A reusable fragment; its root element's children are inlined."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str
    source: Path
    element: Element
    references: tuple[str, ...] = ()


class Template(BaseModel):
    """A document with named slots and snippet references."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str
    source: Path
    element: Element
    slots: tuple[str, ...] = ()
    references: tuple[str, ...] = ()


class FieldType(str, Enum):
    STRING = "string"
    FRAGMENT = "fragment"
    MAPPING = "mapping"


class DataField(BaseModel):
    """One field declared by a dataset."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    type: FieldType
    required: bool = False
    default: Any = None


class Datarow(BaseModel):
    """A single record of a dataset. Read-only once loaded."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    identifier: str
    source: Path
    data: dict[str, Any] = Field(default_factory=dict)


class Dataset(BaseModel):
    """A field schema plus the datarows found under its directory."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    source: Path
    directory: Path = Field(..., description="Directory owning the datarows")
    field_defs: dict[str, DataField] = Field(default_factory=dict)
    rows: tuple[Datarow, ...] = ()


class Page(BaseModel):
    """A page, as represented by its target template and slot values."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source: SourceFile
    template: str
    dataset: str | None = None
    slot_values: dict[str, Element] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return str(self.source.relative)


class RenderedDocument(BaseModel):
    """Final page text and, once mapped, where it is written."""

    model_config = ConfigDict(frozen=True)

    page: str = Field(..., description="Page path relative to its category root")
    datarow: str | None = Field(default=None, description="Bound datarow identifier")
    text: str
    output_path: PurePosixPath | None = None
