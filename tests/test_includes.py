"""Tests for include(): models, view bag sharing, isolation and depth limits."""

from __future__ import annotations

import pytest

from scimitar import DictLoader, Engine, EngineConfig, ExecutionError, IncludeDepthError, TemplateNotFoundError
from scimitar.environment.exceptions import ErrorCode


def make_engine(templates: dict[str, str], **config) -> Engine:
    return Engine(DictLoader(templates), config=EngineConfig(**config) if config else None)


class TestInclude:
    def test_same_model_by_default(self):
        engine = make_engine({"page.html": "<@include('name.html')>", "name.html": "@Model.name"})
        assert engine.run("page.html", {"name": "Ada"}) == "<Ada>"

    def test_explicit_model(self):
        engine = make_engine(
            {
                "list.html": "@for item in Model.items {@include('item.html', item)}",
                "item.html": "[@Model.name]",
            }
        )
        result = engine.run("list.html", {"items": [{"name": "a"}, {"name": "b"}]})
        assert result == "[a][b]"

    def test_output_not_escaped_twice(self):
        engine = make_engine({"page.html": "@include('child.html')", "child.html": "<b>@Model.text</b>"})
        assert engine.run("page.html", {"text": "x < y"}) == "<b>x &lt; y</b>"

    def test_shares_view_bag(self):
        engine = make_engine(
            {
                "page.html": "@{ ViewBag.Count = 2 }@include('child.html')|@ViewBag.Seen",
                "child.html": "@ViewBag.Count@{ ViewBag.Seen = 'yes' }",
            }
        )
        assert engine.run("page.html") == "2|yes"

    def test_sections_do_not_leak_into_include(self):
        engine = make_engine(
            {
                "page.html": "@section S {x}@include('child.html')",
                "child.html": "[@render_section('S')]",
            }
        )
        assert engine.run("page.html") == "[]"

    def test_include_with_own_layout(self):
        engine = make_engine(
            {
                "page.html": "(@include('card.html'))",
                "card.html": "@layout '_frame.html'\ncard",
                "_frame.html": "[@render_body()]",
            }
        )
        assert engine.run("page.html") == "([card])"

    def test_include_from_layout(self):
        engine = make_engine(
            {
                "_layout.html": "@include('nav.html')@render_body()",
                "nav.html": "<nav/>",
                "page.html": "@layout '_layout.html'\nbody",
            }
        )
        assert engine.run("page.html") == "<nav/>body"

    def test_imports_layout_skipped_for_includes(self):
        engine = make_engine(
            {
                "_imports.html": "@layout '_layout.html'\n",
                "_layout.html": "<@include('_nav.html')|@render_body()>",
                "_nav.html": "nav",
                "page.html": "body",
            }
        )
        assert engine.run("page.html") == "<nav|body>"

    def test_include_into_variable(self):
        engine = make_engine({"page.html": "@{ text = include('child.html') }@len(text)", "child.html": "abc"})
        assert engine.run("page.html") == "3"

    def test_repeated_include_compiles_once(self):
        engine = make_engine(
            {"page.html": "@for i in range(3) {@include('child.html', i)}", "child.html": "@Model"}
        )
        assert engine.run("page.html") == "012"
        assert engine.is_template_cached("child.html", int)

    def test_missing_include(self):
        engine = make_engine({"page.html": "@include('nope.html')"})
        with pytest.raises(TemplateNotFoundError, match="nope.html"):
            engine.run("page.html")


class TestIncludeErrors:
    def test_error_reported_in_included_template(self):
        engine = make_engine({"page.html": "before\n@include('bad.html')", "bad.html": "ok\n@(1 / 0)"})
        with pytest.raises(ExecutionError) as exc_info:
            engine.run("page.html")
        error = exc_info.value
        assert error.template_key == "bad.html"
        assert error.position.line == 2
        assert isinstance(error.cause, ZeroDivisionError)
        assert isinstance(error.__cause__, ZeroDivisionError)

    def test_self_include_hits_depth_limit(self):
        engine = make_engine({"loop.html": "x:@include('loop.html')"}, max_include_depth=5)
        with pytest.raises(IncludeDepthError) as exc_info:
            engine.run("loop.html")
        error = exc_info.value
        assert error.max_depth == 5
        assert error.code is ErrorCode.INCLUDE_DEPTH
        assert "Maximum include depth exceeded (5)" in str(error)

    def test_nesting_within_limit(self):
        engine = make_engine(
            {
                "a.html": "a:@include('b.html')",
                "b.html": "b:@include('c.html')",
                "c.html": "c",
            },
            max_include_depth=2,
        )
        assert engine.run("a.html") == "a:b:c"

    def test_includes_disabled(self):
        engine = make_engine({"a.html": "@include('b.html')", "b.html": "b"}, max_include_depth=0)
        with pytest.raises(IncludeDepthError):
            engine.run("a.html")
