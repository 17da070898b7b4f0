"""Builders for registry objects used across the test suite."""

from pathlib import Path
from textwrap import dedent

from oeuvre.core.models import Page, Snippet, SourceFile, Template
from oeuvre.registry.markup import parse_xml, scan_directives
from oeuvre.registry.pages import parse_page

SITE = Path("/site")


def write_files(root: Path, files: dict[str, str]) -> None:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(text).strip(), encoding="utf-8")


def make_template(identifier: str, text: str) -> Template:
    path = SITE / "templates" / f"{identifier}.xml"
    element = parse_xml(dedent(text).strip(), path)
    directives = scan_directives(element, path, unique_slots=True)
    return Template(
        identifier=identifier,
        source=path,
        element=element,
        slots=directives.slots,
        references=directives.references,
    )


def make_snippet(identifier: str, text: str) -> Snippet:
    path = SITE / "snippets" / f"{identifier}.xml"
    element = parse_xml(dedent(text).strip(), path)
    directives = scan_directives(element, path)
    return Snippet(
        identifier=identifier,
        source=path,
        element=element,
        references=directives.references,
    )


def make_page(text: str, name: str = "index.xml") -> Page:
    source = SourceFile(path=SITE / "pages" / name, root=SITE / "pages", base=SITE)
    return parse_page(parse_xml(dedent(text).strip(), source.path), source)
