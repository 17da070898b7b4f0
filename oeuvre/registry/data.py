"""Dataset and datarow loading.

A dataset file declares a schema of fields. The datarows of a dataset live
in the directory named after the dataset file, without its extension::

    data/posts.xml        dataset "posts"
    data/posts/a.xml      datarow "a" of "posts"
    data/posts/b.xml      datarow "b" of "posts"
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from lxml import etree

from ..core.errors import AmbiguousDatarowError, OrphanDatarowError, ParseError
from ..core.models import DataField, Datarow, Dataset, FieldType, SourceFile
from .identifiers import add_unique
from .markup import (
    FRAGMENT,
    NAME_ATTR,
    is_element,
    load_xml,
    local_name,
    parse_bool,
    scan_directives,
)

logger = logging.getLogger(__name__)

TYPE_ATTR = "oeuvre-type"
REQUIRED_ATTR = "oeuvre-required"


def _children(element: etree._Element) -> list[etree._Element]:
    return [child for child in element if is_element(child)]


def _has_content(element: etree._Element) -> bool:
    return bool((element.text or "").strip()) or bool(_children(element))


def _as_fragment(element: etree._Element) -> etree._Element:
    """Copy ``element`` as an ``oeuvre-fragment`` so its children are inlined."""
    fragment = copy.deepcopy(element)
    fragment.tag = FRAGMENT
    fragment.attrib.clear()
    fragment.tail = None
    return fragment


def _as_string(element: etree._Element, path: Path) -> str:
    if _children(element):
        raise ParseError(path, f"field '{local_name(element)}' expects text, not elements")
    return element.text or ""


def _as_mapping(element: etree._Element, path: Path) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for child in _children(element):
        key = local_name(child)
        if key in mapping:
            raise ParseError(path, f"key '{key}' appears more than once in '{local_name(element)}'")
        if _children(child):
            mapping[key] = _as_mapping(child, path)
        else:
            mapping[key] = child.text or ""
    return mapping


def convert_value(element: etree._Element, field_type: FieldType, path: Path) -> Any:
    """Convert a field element to a string, fragment or nested mapping."""
    if field_type is FieldType.STRING:
        return _as_string(element, path)
    if field_type is FieldType.FRAGMENT:
        scan_directives(element, path, allow_fragments=True)
        return _as_fragment(element)
    return _as_mapping(element, path)


def parse_field(element: etree._Element, path: Path) -> DataField:
    """Parse one field declaration of a dataset."""
    name = element.get(NAME_ATTR)
    if not name:
        raise ParseError(path, f"data field <{local_name(element)}> requires an {NAME_ATTR} attribute")

    type_value = element.get(TYPE_ATTR)
    if type_value is None:
        raise ParseError(path, f"data field '{name}' requires an {TYPE_ATTR} attribute")
    try:
        field_type = FieldType(type_value)
    except ValueError as e:
        choices = ", ".join(t.value for t in FieldType)
        raise ParseError(
            path, f"data field '{name}' has invalid {TYPE_ATTR} {type_value!r} (expected {choices})"
        ) from e

    required = parse_bool(element.get(REQUIRED_ATTR, "false"), path, REQUIRED_ATTR)
    default = convert_value(element, field_type, path) if _has_content(element) else None

    return DataField(name=name, type=field_type, required=required, default=default)


def load_dataset(source: SourceFile) -> Dataset:
    """Load a dataset file and its field declarations."""
    element = load_xml(source.path)
    fields: dict[str, DataField] = {}
    for child in _children(element):
        data_field = parse_field(child, source.path)
        if data_field.name in fields:
            raise ParseError(
                source.path, f"data field '{data_field.name}' is declared more than once"
            )
        fields[data_field.name] = data_field

    return Dataset(
        identifier=source.identifier,
        source=source.path,
        directory=source.path.with_suffix(""),
        field_defs=fields,
    )


def load_datarow(path: Path, identifier: str, dataset: Dataset) -> Datarow:
    """Load a datarow file and validate it against its dataset's fields.

    Each child element of the root supplies the field named by its tag.
    Absent optional fields take their declared default, if any.
    """
    element = load_xml(path)
    data: dict[str, Any] = {}
    for child in _children(element):
        key = local_name(child)
        data_field = dataset.field_defs.get(key)
        if data_field is None:
            raise ParseError(
                path, f"field '{key}' is not declared by dataset '{dataset.identifier}'"
            )
        if key in data:
            raise ParseError(path, f"field '{key}' appears more than once")
        data[key] = convert_value(child, data_field.type, path)

    for name, data_field in dataset.field_defs.items():
        if name in data:
            continue
        if data_field.required:
            raise ParseError(path, f"required field '{name}' is missing")
        if data_field.default is not None:
            data[name] = data_field.default

    return Datarow(identifier=identifier, source=path, data=data)


def find_dataset(path: Path, datasets: Mapping[str, Dataset]) -> Dataset:
    """Return the one dataset whose directory contains ``path``."""
    owners = [dataset for dataset in datasets.values() if dataset.directory in path.parents]
    if not owners:
        raise OrphanDatarowError(path)
    if len(owners) > 1:
        raise AmbiguousDatarowError(path, sorted(dataset.identifier for dataset in owners))
    return owners[0]


def load_datasets(
    dataset_sources: Iterable[SourceFile], datarow_sources: Iterable[SourceFile]
) -> Mapping[str, Dataset]:
    """Load datasets, then attach every datarow to its dataset.

    Datarows within a dataset are ordered by source path.

    Returns:
        Read-only mapping of identifier to dataset
    """
    datasets: dict[str, Dataset] = {}
    for source in dataset_sources:
        logger.debug(f"- Reading {source.path}")
        dataset = load_dataset(source)
        add_unique("dataset", datasets, dataset)
        logger.debug(f"-- Loaded dataset {dataset.identifier} from {source.path}")

    rows: dict[str, list[Datarow]] = {identifier: [] for identifier in datasets}
    for source in sorted(datarow_sources, key=lambda s: s.path):
        dataset = find_dataset(source.path, datasets)
        identifier = source.path.relative_to(dataset.directory).with_suffix("").as_posix()
        logger.debug(f"- Reading datarow {identifier} of {dataset.identifier}")
        rows[dataset.identifier].append(load_datarow(source.path, identifier, dataset))

    loaded = {
        identifier: dataset.model_copy(update={"rows": tuple(rows[identifier])})
        for identifier, dataset in datasets.items()
    }
    logger.info(
        f"Loaded {len(loaded)} dataset(s) with {sum(len(r) for r in rows.values())} datarow(s)"
    )
    return MappingProxyType(loaded)
