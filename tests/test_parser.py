"""Tests for the scimitar parser.

Covers transitions (expressions, code blocks, comments, escapes), directives,
sections, control blocks and the positions reported in ParseError.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from scimitar.environment.exceptions import ErrorCode, ParseError
from scimitar.nodes import CodeBlock, Expression, For, If, Section, Text, While, With
from scimitar.parser import Parser, parse

from .strategies import arbitrary_template_source, plain_text


def kinds(template) -> list[str]:
    return [type(node).__name__ for node in template.body]


class TestMarkupAndExpressions:
    """Text and the '@' transitions that produce output."""

    def test_plain_text(self):
        template = parse("Hello World")
        assert template.body == (Text(lineno=1, col_offset=0, value="Hello World"),)

    def test_implicit_expression(self):
        template = parse("Hello @Model.Name!")
        assert kinds(template) == ["Text", "Expression", "Text"]
        expr = template.body[1]
        assert expr.source == "Model.Name"
        assert not expr.explicit
        assert (expr.lineno, expr.col_offset) == (1, 7)
        assert template.body[2].value == "!"

    def test_implicit_expression_with_calls_and_indexes(self):
        template = parse("@items[0].title(1, 'x)')<br>")
        assert template.body[0].source == "items[0].title(1, 'x)')"
        assert template.body[1].value == "<br>"

    def test_trailing_dot_is_text(self):
        template = parse("@Model.Name.")
        assert template.body[0].source == "Model.Name"
        assert template.body[1].value == "."

    def test_explicit_expression(self):
        template = parse("Sum: @(1 + 2)px")
        expr = template.body[1]
        assert expr.source == "1 + 2"
        assert expr.explicit
        assert template.body[2].value == "px"

    def test_explicit_expression_with_nested_parens(self):
        template = parse("@(max((1, 2)) + len(')'))")
        assert template.body[0].source == "max((1, 2)) + len(')')"

    def test_email_address_is_text(self):
        template = parse("mail me@example.com today")
        assert kinds(template) == ["Text"]
        assert template.body[0].value == "mail me@example.com today"

    def test_double_at_is_literal(self):
        template = parse("a@@b @@home")
        assert template.body == (Text(lineno=1, col_offset=0, value="a@b @home"),)

    def test_comment_is_dropped(self):
        template = parse("a@* hidden @Model *@b")
        assert template.body == (Text(lineno=1, col_offset=0, value="ab"),)

    def test_multiline_comment(self):
        template = parse("a\n@* one\ntwo *@\nb")
        assert "".join(node.value for node in template.body) == "a\n\nb"

    def test_model_followed_by_dot_is_expression(self):
        template = parse("@model.Name")
        assert template.model is None
        assert template.body[0].source == "model.Name"

    def test_braces_at_top_level_are_text(self):
        template = parse("body { color: red; }")
        assert template.body[0].value == "body { color: red; }"

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_text_without_transitions_is_one_node(self, source: str) -> None:
        """Markup without '@' parses to a single unchanged Text node."""
        template = parse(source)
        assert len(template.body) == 1
        assert template.body[0].value == source

    @given(source=arbitrary_template_source)
    @settings(max_examples=300)
    def test_no_unhandled_crash(self, source: str) -> None:
        """The parser either succeeds or raises ParseError."""
        try:
            parse(source)
        except ParseError:
            pass


class TestCodeBlocks:
    """@{ ... } statements."""

    def test_single_line(self):
        template = parse("@{ x = 1 }")
        block = template.body[0]
        assert isinstance(block, CodeBlock)
        assert [line.text for line in block.lines] == ["x = 1"]

    def test_multiline_dedent(self):
        source = "@{\n    x = 1\n    if x:\n        y = 2\n}"
        block = parse(source).body[0]
        assert [line.text for line in block.lines] == ["x = 1", "if x:", "    y = 2"]
        assert [(line.lineno, line.col_offset) for line in block.lines] == [(2, 4), (3, 4), (4, 4)]

    def test_brace_inside_string(self):
        block = parse("@{ s = '}' }").body[0]
        assert [line.text for line in block.lines] == ["s = '}'"]

    def test_dict_literal(self):
        block = parse("@{ d = {'a': {'b': 1}} }").body[0]
        assert [line.text for line in block.lines] == ["d = {'a': {'b': 1}}"]

    def test_line_end_consumed(self):
        template = parse("@{ x = 1 }\nHello")
        assert kinds(template) == ["CodeBlock", "Text"]
        assert template.body[1].value == "Hello"

    def test_block_opened_on_brace_line(self):
        block = parse("@{ for i in range(3):\n      total = i\n}").body[0]
        assert [line.text for line in block.lines] == ["for i in range(3):", "   total = i"]
        assert [(line.lineno, line.col_offset) for line in block.lines] == [(1, 3), (2, 3)]

    def test_statement_on_brace_line_then_dedented_lines(self):
        block = parse("@{ a = 1\n    b = 2\n    if b:\n        c = 3\n}").body[0]
        assert [line.text for line in block.lines] == ["a = 1", "b = 2", "if b:", "    c = 3"]

    def test_block_body_not_past_opening_column(self):
        with pytest.raises(ParseError, match="needs its body indented past column 4") as exc_info:
            parse("@{ for i in x:\n  y = i\n}")
        assert exc_info.value.lineno == 2
        assert "new line" in str(exc_info.value)

    def test_unclosed(self):
        with pytest.raises(ParseError, match="Code block is never closed") as exc_info:
            parse("a\n@{ x = 1")
        assert exc_info.value.lineno == 2
        assert exc_info.value.code is ErrorCode.UNCLOSED_BLOCK


class TestDirectives:
    """@model, @inherits, @using, @layout, @functions."""

    def test_model(self):
        template = parse("@model myapp.models.Person\nHi")
        assert template.model.type_path == "myapp.models.Person"
        assert template.body == (Text(lineno=2, col_offset=0, value="Hi"),)

    def test_model_requires_dotted_path(self):
        with pytest.raises(ParseError, match="expects a dotted type path"):
            parse("@model Person")

    def test_duplicate_model(self):
        with pytest.raises(ParseError, match="Duplicate '@model' directive") as exc_info:
            parse("@model a.A\n@model b.B")
        assert exc_info.value.lineno == 2

    def test_inherits(self):
        template = parse("@inherits myapp.pages.PageBase\n")
        assert template.inherits.base_path == "myapp.pages.PageBase"

    def test_using_forms(self):
        template = parse("@using os.path as   osp\n@using math import pi,tau\n@using json\n")
        assert [u.namespace for u in template.usings] == [
            "os.path as osp",
            "math import pi, tau",
            "json",
        ]

    def test_invalid_using(self):
        with pytest.raises(ParseError, match="Invalid '@using' target"):
            parse("@using 3things")

    def test_layout(self):
        template = parse("@layout '_layout.html'\nBody")
        assert template.layout.expression == "'_layout.html'"
        assert template.body[0].value == "Body"

    def test_duplicate_layout(self):
        with pytest.raises(ParseError, match="Duplicate '@layout' directive"):
            parse("@layout 'a.html'\n@layout 'b.html'\n")

    def test_layout_must_be_top_level(self):
        with pytest.raises(ParseError, match="must appear at the top level"):
            parse("@if x {\n@layout 'a.html'\n}")

    def test_directive_requires_argument(self):
        with pytest.raises(ParseError, match="'@layout' requires an argument"):
            parse("@layout\n")

    def test_functions(self):
        source = "@functions {\n    def shout(self, text):\n        return text.upper()\n}\n"
        template = parse(source)
        assert template.body == ()
        lines = template.functions[0].lines
        assert [line.text for line in lines] == ["def shout(self, text):", "    return text.upper()"]

    def test_functions_opened_on_brace_line(self):
        with pytest.raises(ParseError, match="Start the code on a new line"):
            parse("@functions { def f(self):\n    return 1\n}\n")

    def test_functions_requires_brace(self):
        with pytest.raises(ParseError, match="Expected '\\{' after '@functions'"):
            parse("@functions x")


class TestSections:
    """@section Name { ... }."""

    def test_section(self):
        template = parse("Hi @section Foot {bye}")
        assert kinds(template) == ["Text", "Section"]
        section = template.body[1]
        assert section.name == "Foot"
        assert section.body == (Text(lineno=1, col_offset=18, value="bye"),)

    def test_section_with_markup_braces(self):
        template = parse("@section Styles {<style>p { margin: 0; }</style>}")
        assert template.body[0].body[0].value == "<style>p { margin: 0; }</style>"

    def test_section_block_lines(self):
        template = parse("@section Scripts {\n    <script></script>\n}\n<p>")
        section = template.body[0]
        assert section.body[0].value == "    <script></script>\n"
        assert template.body[1].value == "<p>"

    def test_nested_sections_rejected(self):
        with pytest.raises(ParseError, match="Sections cannot be nested"):
            parse("@section A {@section B {x}}")

    def test_section_inside_if_allowed(self):
        template = parse("@if show {@section A {x}}")
        assert isinstance(template.body[0].body[0], Section)

    def test_unclosed_section_position(self):
        with pytest.raises(ParseError, match="Section 'Foot' is never closed") as exc_info:
            parse("line1\n@section Foot {\nabc", name="page.html")
        error = exc_info.value
        assert (error.lineno, error.col_offset) == (2, 0)
        assert error.template_key == "page.html"
        assert "page.html:2:0" in str(error)

    def test_missing_name(self):
        with pytest.raises(ParseError, match="Expected a section name"):
            parse("@section {x}")


class TestControlFlow:
    """@if, @for, @while, @with."""

    def test_if_elif_else(self):
        template = parse("@if x > 1 {big} elif x > 0 {small} else {none}")
        node = template.body[0]
        assert isinstance(node, If)
        assert node.test == "x > 1"
        assert [clause.test for clause in node.elif_] == ["x > 0"]
        assert node.else_[0].value == "none"

    def test_else_if(self):
        node = parse("@if a {1} else if b {2} else {3}").body[0]
        assert [clause.test for clause in node.elif_] == ["b"]
        assert node.else_[0].value == "3"

    def test_if_with_parens(self):
        node = parse("@if(a or b){yes}").body[0]
        assert node.test == "(a or b)"

    def test_word_starting_with_else_is_text(self):
        template = parse("@if a {x} elsewhere")
        assert kinds(template) == ["If", "Text"]
        assert template.body[0].else_ == ()
        assert template.body[1].value == " elsewhere"

    def test_else_without_block_is_text(self):
        template = parse("@if a {x} else text")
        assert template.body[1].value == " else text"

    def test_orphan_else(self):
        with pytest.raises(ParseError, match="'@else' without a preceding '@if' block"):
            parse("@else {x}")

    def test_for_with_empty(self):
        node = parse("@for item in items {<li>@item</li>} empty {none}").body[0]
        assert isinstance(node, For)
        assert node.header == "item in items"
        assert [type(n).__name__ for n in node.body] == ["Text", "Expression", "Text"]
        assert node.empty[0].value == "none"

    def test_parenthesized_dict_in_header(self):
        node = parse("@for k in ({'a': 1}) {@k}").body[0]
        assert node.header == "k in ({'a': 1})"

    def test_multiline_header_joined(self):
        node = parse("@if (a and\n    b) {x}").body[0]
        assert node.test == "(a and b)"

    def test_while_and_with(self):
        template = parse("@while n {@{ n -= 1 }}@with open_thing() as t {@t}")
        assert isinstance(template.body[0], While)
        assert isinstance(template.body[1], With)
        assert template.body[1].header == "open_thing() as t"

    def test_nested_blocks(self):
        node = parse("@for row in rows {@for cell in row {@if cell {[@cell]}}}").body[0]
        inner = node.body[0]
        assert isinstance(inner, For)
        assert isinstance(inner.body[0], If)
        assert isinstance(inner.body[0].body[1], Expression)

    def test_missing_brace(self):
        with pytest.raises(ParseError, match="Expected '\\{' to open the '@if' block"):
            parse("@if x\nfoo")

    def test_missing_condition(self):
        with pytest.raises(ParseError, match="'@if' requires a condition"):
            parse("@if {x}")

    def test_unclosed_if(self):
        with pytest.raises(ParseError, match="'@if' block is never closed") as exc_info:
            parse("a\nb\n  @if x {\n")
        assert exc_info.value.position.line == 3
        assert exc_info.value.position.column == 2

    def test_statement_owns_its_line(self):
        source = "<ul>\n    @for x in xs {\n        <li>@x</li>\n    }\n</ul>"
        template = parse(source)
        assert template.body[0].value == "<ul>\n"
        loop = template.body[1]
        assert loop.body[0].value == "        <li>"
        assert loop.body[2].value == "</li>\n"
        assert template.body[2].value == "</ul>"


class TestImportsMode:
    """Imports files accept directives only."""

    def test_directives_allowed(self):
        template = parse("@using os\n@layout '_layout.html'\n\n", imports_mode=True)
        assert [u.namespace for u in template.usings] == ["os"]
        assert template.layout.expression == "'_layout.html'"
        assert template.body == ()

    def test_comments_allowed(self):
        template = parse("@* shared imports *@\n@using json\n", imports_mode=True)
        assert template.body == ()

    def test_markup_rejected(self):
        with pytest.raises(ParseError, match="Imports files may only contain directives"):
            parse("@using os\nHello", imports_mode=True)

    @pytest.mark.parametrize(
        ("source", "message"),
        [
            ("@model a.B", "'@model' is not allowed in an imports file"),
            ("@section A {x}", "'@section' blocks are not allowed in an imports file"),
            ("@(1)", "Expressions are not allowed in an imports file"),
            ("@{ x = 1 }", "Code blocks are not allowed in an imports file"),
            ("@if x {y}", "'@if' blocks are not allowed in an imports file"),
        ],
    )
    def test_constructs_rejected(self, source, message):
        with pytest.raises(ParseError, match=message):
            parse(source, imports_mode=True)


class TestParseErrors:
    """Malformed transitions and their positions."""

    def test_unexpected_character(self):
        with pytest.raises(ParseError, match="Unexpected character ' ' after '@'") as exc_info:
            parse("a @ b")
        assert exc_info.value.position.column == 2

    def test_unexpected_end(self):
        with pytest.raises(ParseError, match="Unexpected end of template after '@'"):
            parse("abc@")

    def test_unclosed_explicit_expression(self):
        with pytest.raises(ParseError, match="Unclosed '@\\(' expression"):
            parse("@(1 + ")

    def test_empty_expression(self):
        with pytest.raises(ParseError, match="Empty expression"):
            parse("@( )")

    def test_comment_never_closed(self):
        with pytest.raises(ParseError, match="Comment is never closed"):
            parse("ok\n@* x")

    def test_error_carries_snippet_and_suggestion(self):
        with pytest.raises(ParseError) as exc_info:
            parse("first\nsecond @ third", name="t.html")
        message = str(exc_info.value)
        assert "t.html:2:7" in message
        assert "second @ third" in message
        assert "Suggestion:" in message

    def test_parser_class_matches_function(self):
        source = "Hi @Model.Name @if x {y}"
        assert Parser(source, "a.html").parse() == parse(source, "a.html")
