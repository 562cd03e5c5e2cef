"""Directive parsing for the scimitar parser.

Provides mixin for parsing declarations that shape the generated class
(model, inherits, using, layout, functions) and named sections.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scimitar._types import dotted_parts
from scimitar.environment.exceptions import ErrorCode, ParseError
from scimitar.nodes import (
    FunctionsBlock,
    InheritsDirective,
    LayoutDirective,
    ModelDirective,
    Section,
    UsingDirective,
)
from scimitar.utils.namespaces import normalize_namespace

if TYPE_CHECKING:
    from scimitar.nodes import CodeLine, Node
    from scimitar.parser.scanner import Scanner


class DirectiveParsingMixin:
    """Mixin for parsing directives and sections.

    Required Host Attributes:
        - _scanner: Scanner
        - _imports_mode: bool
        - _block_depth / _section_depth: int
        - _model, _inherits, _layout: collected singleton directives
        - _usings, _functions: collected repeatable directives
        - _error: method
        - _code_lines: method
        - _parse_block_body: method
    """

    if TYPE_CHECKING:
        _scanner: Scanner
        _imports_mode: bool
        _block_depth: int
        _section_depth: int
        _model: ModelDirective | None
        _inherits: InheritsDirective | None
        _layout: LayoutDirective | None
        _usings: list[UsingDirective]
        _functions: list[FunctionsBlock]

        def _error(
            self,
            message: str,
            offset: int | None = None,
            *,
            suggestion: str | None = None,
            code: ErrorCode | None = None,
        ) -> ParseError: ...

        def _code_lines(self, begin: int, end: int) -> tuple[CodeLine, ...]: ...

        def _parse_block_body(self, brace: int, what: str, start: int) -> tuple[Node, ...]: ...

    def _require_top_level(self, keyword: str, start: int) -> None:
        if self._block_depth:
            raise self._error(
                f"'@{keyword}' must appear at the top level of the template",
                start,
                code=ErrorCode.DIRECTIVE_MISUSE,
            )

    def _directive_argument(self, keyword: str, start: int) -> tuple[str, int]:
        """Read the rest of the directive line; return (argument, offset)."""
        sc = self._scanner
        sc.pos = start + 1 + len(keyword)
        sc.skip_inline_whitespace()
        text, offset = sc.rest_of_line()
        argument = text.strip()
        if not argument:
            raise self._error(
                f"'@{keyword}' requires an argument",
                start,
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        return argument, offset + len(text) - len(text.lstrip())

    def _dotted_argument(self, keyword: str, start: int, example: str) -> tuple[str, int]:
        path, offset = self._directive_argument(keyword, start)
        if "." not in path or not dotted_parts(path):
            raise self._error(
                f"'@{keyword}' expects a dotted type path, got {path!r}",
                offset,
                suggestion=f"Name the module and the type, e.g. '@{keyword} {example}'",
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        return path, offset

    def _parse_model(self, start: int) -> None:
        """Parse @model dotted.Type."""
        if self._imports_mode:
            raise self._error(
                "'@model' is not allowed in an imports file",
                start,
                suggestion="Declare the model type in each template",
                code=ErrorCode.DIRECTIVE_MISUSE,
            )
        self._require_top_level("model", start)
        path, offset = self._dotted_argument("model", start, "myapp.models.Person")
        if self._model is not None:
            raise self._error(
                "Duplicate '@model' directive",
                start,
                suggestion=f"The model type is already declared on line {self._model.lineno}",
                code=ErrorCode.DIRECTIVE_MISUSE,
            )
        pos = self._scanner.position(offset)
        self._model = ModelDirective(lineno=pos.line, col_offset=pos.column, type_path=path)

    def _parse_inherits(self, start: int) -> None:
        """Parse @inherits dotted.Base."""
        self._require_top_level("inherits", start)
        path, offset = self._dotted_argument("inherits", start, "myapp.templates.PageBase")
        if self._inherits is not None:
            raise self._error(
                "Duplicate '@inherits' directive",
                start,
                code=ErrorCode.DIRECTIVE_MISUSE,
            )
        pos = self._scanner.position(offset)
        self._inherits = InheritsDirective(lineno=pos.line, col_offset=pos.column, base_path=path)

    def _parse_using(self, start: int) -> None:
        """Parse @using module / @using module as alias / @using module import names."""
        self._require_top_level("using", start)
        argument, offset = self._directive_argument("using", start)
        namespace = normalize_namespace(argument)
        if namespace is None:
            raise self._error(
                f"Invalid '@using' target {argument!r}",
                offset,
                suggestion="Use '@using module', '@using module as alias' or '@using module import name'",
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        pos = self._scanner.position(offset)
        self._usings.append(UsingDirective(lineno=pos.line, col_offset=pos.column, namespace=namespace))

    def _parse_layout(self, start: int) -> None:
        """Parse @layout expr."""
        self._require_top_level("layout", start)
        expression, offset = self._directive_argument("layout", start)
        if self._layout is not None:
            raise self._error(
                "Duplicate '@layout' directive",
                start,
                suggestion="Assign self.layout in a code block to choose a layout dynamically",
                code=ErrorCode.DIRECTIVE_MISUSE,
            )
        pos = self._scanner.position(offset)
        self._layout = LayoutDirective(lineno=pos.line, col_offset=pos.column, expression=expression)

    def _parse_functions(self, start: int) -> None:
        """Parse @functions { class members }."""
        self._require_top_level("functions", start)
        sc = self._scanner
        sc.pos = start + len("@functions")
        sc.skip_inline_whitespace()
        if sc.peek() != "{":
            raise self._error(
                "Expected '{' after '@functions'",
                sc.pos,
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        brace = sc.pos
        close = sc.find_closing(brace + 1, "{", "}")
        if close == -1:
            raise self._error(
                "'@functions' block is never closed",
                start,
                suggestion="Add the matching '}'",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        lines = self._code_lines(brace + 1, close)
        sc.pos = close + 1
        pos = sc.position(start)
        self._functions.append(FunctionsBlock(lineno=pos.line, col_offset=pos.column, lines=lines))

    def _parse_section(self, start: int) -> Section:
        """Parse @section Name { markup }."""
        if self._imports_mode:
            raise self._error(
                "Sections are not allowed in an imports file",
                start,
                code=ErrorCode.DIRECTIVE_MISUSE,
            )
        if self._section_depth:
            raise self._error(
                "Sections cannot be nested",
                start,
                suggestion="Close the enclosing section before starting a new one",
                code=ErrorCode.DIRECTIVE_MISUSE,
            )
        sc = self._scanner
        sc.pos = start + len("@section")
        sc.skip_inline_whitespace()
        name = sc.match_identifier()
        if name is None:
            raise self._error(
                "Expected a section name after '@section'",
                sc.pos,
                suggestion="Section names are identifiers, e.g. '@section Scripts { ... }'",
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        sc.pos += len(name)
        sc.skip_inline_whitespace()
        if sc.peek() != "{":
            raise self._error(
                f"Expected '{{' after section name '{name}'",
                sc.pos,
                suggestion="Section names are identifiers, e.g. '@section Scripts { ... }'",
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        self._section_depth += 1
        try:
            body = self._parse_block_body(sc.pos, f"Section '{name}'", start)
        finally:
            self._section_depth -= 1
        pos = sc.position(start)
        return Section(lineno=pos.line, col_offset=pos.column, name=name, body=body)
