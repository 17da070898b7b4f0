"""Tests for oeuvre.rendering.engine: slots, snippets and data binding."""

import pytest

from oeuvre.core.errors import (
    MissingContextError,
    RenderError,
    SlotCycleError,
    SnippetCycleError,
    UnresolvedDatasetError,
    UnresolvedSnippetError,
    UnresolvedTemplateError,
)
from oeuvre.core.models import Datarow, Dataset
from oeuvre.rendering.engine import RenderEngine, build_context, lookup

from .helpers import SITE, make_page, make_snippet, make_template

BASE = """
<html><body><oeuvre-slot oeuvre-name="body"/></body></html>
"""

HELLO_PAGE = """
<page oeuvre-template="base"><oeuvre-fragment oeuvre-slot="body">Hello</oeuvre-fragment></page>
"""


def _engine(templates=(), snippets=(), datasets=(), **kwargs) -> RenderEngine:
    return RenderEngine(
        {t.identifier: t for t in templates},
        {s.identifier: s for s in snippets},
        {d.identifier: d for d in datasets},
        **kwargs,
    )


def _posts(*rows: tuple[str, dict]) -> Dataset:
    return Dataset(
        identifier="posts",
        source=SITE / "data" / "posts.xml",
        directory=SITE / "data" / "posts",
        rows=tuple(
            Datarow(identifier=name, source=SITE / "data" / "posts" / f"{name}.xml", data=data)
            for name, data in rows
        ),
    )


def _render_one(engine: RenderEngine, page_text: str) -> str:
    documents = engine.render_page(make_page(page_text))
    assert len(documents) == 1
    return documents[0].text


# ---------------------------------------------------------------------------
# Context helpers
# ---------------------------------------------------------------------------


class TestContext:
    def test_datarow_fields_override_page_values(self) -> None:
        context = build_context({"title": "page", "body": "b"}, {"title": "row"})
        assert context == {"title": "row", "body": "b"}

    def test_merge_is_shallow(self) -> None:
        context = build_context({"author": {"name": "A", "email": "a@x"}}, {"author": {"name": "B"}})
        assert context["author"] == {"name": "B"}

    def test_lookup_walks_nested_mappings(self) -> None:
        assert lookup({"author": {"name": "Ann"}}, "author.name") == "Ann"

    def test_lookup_prefers_exact_key(self) -> None:
        assert lookup({"a.b": "flat", "a": {"b": "nested"}}, "a.b") == "flat"

    def test_lookup_missing(self) -> None:
        assert lookup({"author": {}}, "author.name") is lookup({}, "nothing")


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------


class TestSlots:
    def test_fragment_fills_slot(self) -> None:
        engine = _engine([make_template("base", BASE)])
        assert _render_one(engine, HELLO_PAGE) == "<html><body>Hello</body></html>"

    def test_element_value_is_inserted_without_oeuvre_attributes(self) -> None:
        engine = _engine([make_template("base", BASE)])
        text = _render_one(
            engine,
            '<page oeuvre-template="base"><h1 oeuvre-slot="body" class="big">Hi</h1></page>',
        )
        assert text == '<html><body><h1 class="big">Hi</h1></body></html>'

    def test_one_value_fills_several_slots(self) -> None:
        template = make_template(
            "base",
            '<html><head><oeuvre-slot oeuvre-name="title"/></head>'
            '<body><oeuvre-slot oeuvre-name="heading"/></body></html>',
        )
        text = _render_one(
            _engine([template]),
            '<page oeuvre-template="base">'
            '<oeuvre-fragment oeuvre-slot="title, heading">Home</oeuvre-fragment></page>',
        )
        assert text == "<html><head>Home</head><body>Home</body></html>"

    def test_text_around_slots_is_kept_in_order(self) -> None:
        template = make_template(
            "base", '<p>a<oeuvre-slot oeuvre-name="x"/>b<i>c</i>d</p>'
        )
        text = _render_one(
            _engine([template]),
            '<page oeuvre-template="base"><oeuvre-fragment oeuvre-slot="x"><b>X</b>y</oeuvre-fragment></page>',
        )
        assert text == "<p>a<b>X</b>yb<i>c</i>d</p>"

    def test_missing_required_slot(self) -> None:
        engine = _engine([make_template("base", BASE)])
        with pytest.raises(MissingContextError) as exc_info:
            _render_one(engine, '<page oeuvre-template="base"/>')
        assert exc_info.value.key == "body"
        assert "index.xml" in str(exc_info.value)

    def test_optional_slot_renders_fallback(self) -> None:
        template = make_template(
            "base",
            '<title><oeuvre-slot oeuvre-name="title" oeuvre-optional="true">Untitled</oeuvre-slot></title>',
        )
        assert _render_one(_engine([template]), '<page oeuvre-template="base"/>') == "<title>Untitled</title>"

    def test_optional_slot_without_fallback_is_empty(self) -> None:
        template = make_template(
            "base",
            '<head><title><oeuvre-slot oeuvre-name="title" oeuvre-optional="true"/></title></head>',
        )
        assert _render_one(_engine([template]), '<page oeuvre-template="base"/>') == "<head><title/></head>"

    def test_slot_referencing_itself_fails(self) -> None:
        template = make_template("base", BASE)
        page = (
            '<page oeuvre-template="base"><oeuvre-fragment oeuvre-slot="body">'
            '<oeuvre-slot oeuvre-name="body"/></oeuvre-fragment></page>'
        )
        with pytest.raises(SlotCycleError) as exc_info:
            _render_one(_engine([template]), page)
        assert exc_info.value.chain == ["body", "body"]

    def test_slot_value_can_use_other_slots(self) -> None:
        template = make_template("base", BASE)
        page = (
            '<page oeuvre-template="base">'
            '<oeuvre-fragment oeuvre-slot="body"><h1><oeuvre-slot oeuvre-name="title"/></h1></oeuvre-fragment>'
            '<oeuvre-fragment oeuvre-slot="title">Welcome</oeuvre-fragment></page>'
        )
        assert _render_one(_engine([template]), page) == "<html><body><h1>Welcome</h1></body></html>"

    def test_comments_are_kept(self) -> None:
        template = make_template("base", '<html><!-- note --><oeuvre-slot oeuvre-name="body"/></html>')
        assert _render_one(_engine([template]), HELLO_PAGE) == "<html><!-- note -->Hello</html>"


# ---------------------------------------------------------------------------
# Snippets
# ---------------------------------------------------------------------------


class TestSnippets:
    def test_include_inlines_snippet_children(self) -> None:
        template = make_template(
            "base",
            '<html><body><oeuvre-include oeuvre-snippet="nav"/>'
            '<main><oeuvre-slot oeuvre-name="body"/></main></body></html>',
        )
        snippet = make_snippet("nav", "<snippet><nav>Home</nav></snippet>")
        text = _render_one(_engine([template], [snippet]), HELLO_PAGE)
        assert text == "<html><body><nav>Home</nav><main>Hello</main></body></html>"

    def test_snippet_uses_page_context(self) -> None:
        template = make_template("base", '<div><oeuvre-include oeuvre-snippet="greeting"/></div>')
        snippet = make_snippet("greeting", '<snippet><p>Hi <oeuvre-slot oeuvre-name="name"/>!</p></snippet>')
        page = '<page oeuvre-template="base"><oeuvre-fragment oeuvre-slot="name">Ann</oeuvre-fragment></page>'
        assert _render_one(_engine([template], [snippet]), page) == "<div><p>Hi Ann!</p></div>"

    def test_nested_snippets_expand_depth_first(self) -> None:
        template = make_template("base", '<div><oeuvre-include oeuvre-snippet="outer"/></div>')
        outer = make_snippet("outer", '<s><a/><oeuvre-include oeuvre-snippet="inner"/><c/></s>')
        inner = make_snippet("inner", "<s><b/></s>")
        text = _render_one(_engine([template], [outer, inner]), '<page oeuvre-template="base"/>')
        assert text == "<div><a/><b/><c/></div>"

    def test_same_snippet_twice_is_not_a_cycle(self) -> None:
        template = make_template(
            "base",
            '<div><oeuvre-include oeuvre-snippet="hr"/><oeuvre-include oeuvre-snippet="hr"/></div>',
        )
        snippet = make_snippet("hr", "<s><hr/></s>")
        text = _render_one(_engine([template], [snippet]), '<page oeuvre-template="base"/>')
        assert text == "<div><hr/><hr/></div>"

    def test_cycle_fails(self) -> None:
        template = make_template("base", '<div><oeuvre-include oeuvre-snippet="a"/></div>')
        a = make_snippet("a", '<s><oeuvre-include oeuvre-snippet="b"/></s>')
        b = make_snippet("b", '<s><oeuvre-include oeuvre-snippet="a"/></s>')
        with pytest.raises(SnippetCycleError) as exc_info:
            _render_one(_engine([template], [a, b]), '<page oeuvre-template="base"/>')
        assert exc_info.value.chain == ["a", "b", "a"]

    def test_self_inclusion_fails(self) -> None:
        template = make_template("base", '<div><oeuvre-include oeuvre-snippet="a"/></div>')
        a = make_snippet("a", '<s><oeuvre-include oeuvre-snippet="a"/></s>')
        with pytest.raises(SnippetCycleError):
            _render_one(_engine([template], [a]), '<page oeuvre-template="base"/>')

    def test_unresolved_snippet_fails(self) -> None:
        template = make_template("base", '<div><oeuvre-include oeuvre-snippet="missing"/></div>')
        with pytest.raises(UnresolvedSnippetError) as exc_info:
            _render_one(_engine([template]), '<page oeuvre-template="base"/>')
        assert exc_info.value.identifier == "missing"


# ---------------------------------------------------------------------------
# Pages, templates and datasets
# ---------------------------------------------------------------------------


class TestPages:
    def test_unresolved_template(self) -> None:
        engine = _engine([make_template("base", BASE)])
        with pytest.raises(UnresolvedTemplateError) as exc_info:
            engine.render_page(make_page('<page oeuvre-template="nope"/>'))
        assert exc_info.value.identifier == "nope"
        assert exc_info.value.available == ["base"]

    def test_unresolved_dataset(self) -> None:
        engine = _engine([make_template("base", BASE)])
        with pytest.raises(UnresolvedDatasetError):
            engine.render_page(make_page('<page oeuvre-template="base" oeuvre-dataset="posts"/>'))

    def test_one_document_per_datarow(self) -> None:
        template = make_template("post", '<h1><oeuvre-slot oeuvre-name="title"/></h1>')
        dataset = _posts(("a", {"title": "Alpha"}), ("b", {"title": "Beta"}))
        documents = _engine([template], datasets=[dataset]).render_page(
            make_page('<page oeuvre-template="post" oeuvre-dataset="posts"/>', name="post.xml")
        )
        assert [(d.datarow, d.text) for d in documents] == [
            ("a", "<h1>Alpha</h1>"),
            ("b", "<h1>Beta</h1>"),
        ]
        assert all(d.page == "post.xml" for d in documents)

    def test_empty_dataset_renders_nothing(self) -> None:
        template = make_template("post", '<h1><oeuvre-slot oeuvre-name="title"/></h1>')
        documents = _engine([template], datasets=[_posts()]).render_page(
            make_page('<page oeuvre-template="post" oeuvre-dataset="posts"/>')
        )
        assert documents == []

    def test_datarow_overrides_page_value(self) -> None:
        template = make_template("post", '<h1><oeuvre-slot oeuvre-name="title"/></h1>')
        dataset = _posts(("a", {"title": "From row"}))
        page = (
            '<page oeuvre-template="post" oeuvre-dataset="posts">'
            '<oeuvre-fragment oeuvre-slot="title">From page</oeuvre-fragment></page>'
        )
        (document,) = _engine([template], datasets=[dataset]).render_page(make_page(page))
        assert document.text == "<h1>From row</h1>"

    def test_dotted_slot_reads_nested_datarow_field(self) -> None:
        template = make_template("post", '<p><oeuvre-slot oeuvre-name="author.name"/></p>')
        dataset = _posts(("a", {"author": {"name": "Ann"}}))
        (document,) = _engine([template], datasets=[dataset]).render_page(
            make_page('<page oeuvre-template="post" oeuvre-dataset="posts"/>')
        )
        assert document.text == "<p>Ann</p>"

    def test_mapping_cannot_fill_a_slot(self) -> None:
        template = make_template("post", '<p><oeuvre-slot oeuvre-name="author"/></p>')
        dataset = _posts(("a", {"author": {"name": "Ann"}}))
        with pytest.raises(RenderError, match="resolves to a dict"):
            _engine([template], datasets=[dataset]).render_page(
                make_page('<page oeuvre-template="post" oeuvre-dataset="posts"/>')
            )

    def test_attribute_interpolation(self) -> None:
        template = make_template(
            "post", '<a href="/posts/{{ slug }}.xml"><oeuvre-slot oeuvre-name="title"/></a>'
        )
        dataset = _posts(("a", {"slug": "alpha", "title": "Alpha"}))
        (document,) = _engine([template], datasets=[dataset]).render_page(
            make_page('<page oeuvre-template="post" oeuvre-dataset="posts"/>')
        )
        assert document.text == '<a href="/posts/alpha.xml">Alpha</a>'

    def test_attribute_interpolation_missing_key(self) -> None:
        template = make_template("base", '<a href="/{{ slug }}">x</a>')
        with pytest.raises(MissingContextError) as exc_info:
            _render_one(_engine([template]), '<page oeuvre-template="base"/>')
        assert exc_info.value.key == "slug"

    def test_doctype_is_prefixed(self) -> None:
        engine = _engine([make_template("base", BASE)], doctype="<!DOCTYPE html>")
        assert _render_one(engine, HELLO_PAGE) == "<!DOCTYPE html>\n<html><body>Hello</body></html>"

    def test_rendering_is_deterministic(self) -> None:
        template = make_template("post", '<a href="{{ slug }}"><oeuvre-slot oeuvre-name="title"/></a>')
        dataset = _posts(("a", {"slug": "a", "title": "A"}), ("b", {"slug": "b", "title": "B"}))
        engine = _engine([template], datasets=[dataset])
        page = make_page('<page oeuvre-template="post" oeuvre-dataset="posts"/>')
        assert engine.render_page(page) == engine.render_page(page)

    def test_render_all_stops_at_first_failure(self) -> None:
        engine = _engine([make_template("base", BASE)])
        pages = [make_page(HELLO_PAGE), make_page('<page oeuvre-template="gone"/>', name="b.xml")]
        with pytest.raises(UnresolvedTemplateError):
            engine.render_all(pages)


# ---------------------------------------------------------------------------
# Namespaced markup
# ---------------------------------------------------------------------------

XHTML = "http://www.w3.org/1999/xhtml"
SVG = "http://www.w3.org/2000/svg"


class TestNamespaces:
    def test_xhtml_template_keeps_its_default_namespace(self) -> None:
        template = make_template(
            "base", f'<html xmlns="{XHTML}"><body><oeuvre-slot oeuvre-name="body"/></body></html>'
        )
        assert _render_one(_engine([template]), HELLO_PAGE) == (
            f'<html xmlns="{XHTML}"><body>Hello</body></html>'
        )

    def test_required_slot_in_namespaced_template(self) -> None:
        template = make_template(
            "base", f'<html xmlns="{XHTML}"><body><oeuvre-slot oeuvre-name="body"/></body></html>'
        )
        with pytest.raises(MissingContextError) as exc_info:
            _render_one(_engine([template]), '<page oeuvre-template="base"/>')
        assert exc_info.value.key == "body"

    def test_include_in_namespaced_template(self) -> None:
        template = make_template(
            "base", f'<html xmlns="{XHTML}"><oeuvre-include oeuvre-snippet="nav"/></html>'
        )
        snippet = make_snippet("nav", f'<s xmlns="{XHTML}"><nav>Home</nav></s>')
        text = _render_one(_engine([template], [snippet]), '<page oeuvre-template="base"/>')
        assert text == f'<html xmlns="{XHTML}"><nav>Home</nav></html>'

    def test_unresolved_include_in_namespaced_template(self) -> None:
        template = make_template(
            "base", f'<html xmlns="{XHTML}"><oeuvre-include oeuvre-snippet="missing"/></html>'
        )
        with pytest.raises(UnresolvedSnippetError):
            _render_one(_engine([template]), '<page oeuvre-template="base"/>')

    def test_inline_svg_keeps_its_declaration(self) -> None:
        template = make_template(
            "base",
            f'<html><body><svg xmlns="{SVG}"><circle r="1"/></svg>'
            '<oeuvre-slot oeuvre-name="body"/></body></html>',
        )
        assert _render_one(_engine([template]), HELLO_PAGE) == (
            f'<html><body><svg xmlns="{SVG}"><circle r="1"/></svg>Hello</body></html>'
        )

    def test_prefixed_namespaces_are_kept(self) -> None:
        template = make_template(
            "base",
            f'<html xmlns="{XHTML}"><svg:svg xmlns:svg="{SVG}"><svg:rect/></svg:svg></html>',
        )
        assert _render_one(_engine([template]), '<page oeuvre-template="base"/>') == (
            f'<html xmlns="{XHTML}"><svg:svg xmlns:svg="{SVG}"><svg:rect/></svg:svg></html>'
        )

    def test_namespaced_page_values(self) -> None:
        template = make_template(
            "base", f'<html xmlns="{XHTML}"><body><oeuvre-slot oeuvre-name="body"/></body></html>'
        )
        page = (
            f'<page xmlns="{XHTML}" oeuvre-template="base">'
            '<p oeuvre-slot="body" class="lead">Hi</p></page>'
        )
        assert _render_one(_engine([template]), page) == (
            f'<html xmlns="{XHTML}"><body><p class="lead">Hi</p></body></html>'
        )
