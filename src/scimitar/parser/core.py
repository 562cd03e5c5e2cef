"""Razor-style template parser for scimitar.

Walks template text once and builds an immutable node tree. Embedded Python
(expressions, code blocks, block headers) is located but never parsed; the
Python toolchain checks it when the generated module is compiled.

Transitions:
    @@                  literal '@'
    @* ... *@           comment
    @name.attr[0](x)    implicit expression
    @( expr )           explicit expression
    @{ statements }     code block
    @keyword ...        directive or control block

Example:
    >>> template = Parser("Hello @Model.Name!").parse()
    >>> [type(node).__name__ for node in template.body]
    ['Text', 'Expression', 'Text']

"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from scimitar.environment.exceptions import ErrorCode, ParseError
from scimitar.nodes import CodeBlock, CodeLine, Expression, Template, Text
from scimitar.parser.blocks.control_flow import ControlFlowParsingMixin
from scimitar.parser.blocks.directives import DirectiveParsingMixin
from scimitar.parser.scanner import Scanner, is_ident_char, is_ident_start

if TYPE_CHECKING:
    from collections.abc import Callable

    from scimitar.nodes import (
        FunctionsBlock,
        InheritsDirective,
        LayoutDirective,
        ModelDirective,
        Node,
        UsingDirective,
    )

_TOP_SPECIAL = re.compile(r"@")
_BLOCK_SPECIAL = re.compile(r"[@{}]")

# Keywords that may be followed directly by '(' or '{'
_BRACKETED_KEYWORDS = frozenset({"if", "for", "while", "with", "functions"})

# Directives permitted in an imports file
_IMPORTS_KEYWORDS = frozenset({"using", "inherits", "layout", "functions"})

# Continuation keywords that are only valid after a block
_ORPHAN_KEYWORDS = {"else": "if", "elif": "if", "empty": "for"}


class Parser(DirectiveParsingMixin, ControlFlowParsingMixin):
    """Parser producing a ``nodes.Template`` from template text.

    Args:
        source: Template text
        name: Template key, used in error messages
        imports_mode: Parse an imports file (directives only)

    """

    __slots__ = (
        "_block_depth",
        "_functions",
        "_handlers",
        "_imports_mode",
        "_inherits",
        "_layout",
        "_model",
        "_name",
        "_scanner",
        "_section_depth",
        "_source",
        "_usings",
    )

    def __init__(self, source: str, name: str | None = None, *, imports_mode: bool = False):
        self._source = source
        self._name = name
        self._imports_mode = imports_mode
        self._scanner = Scanner(source)
        self._block_depth = 0
        self._section_depth = 0
        self._model: ModelDirective | None = None
        self._inherits: InheritsDirective | None = None
        self._layout: LayoutDirective | None = None
        self._usings: list[UsingDirective] = []
        self._functions: list[FunctionsBlock] = []
        self._handlers: dict[str, Callable[[int], Node | None]] = {
            "model": self._parse_model,
            "inherits": self._parse_inherits,
            "using": self._parse_using,
            "layout": self._parse_layout,
            "functions": self._parse_functions,
            "section": self._parse_section,
            "if": self._parse_if,
            "for": self._parse_for,
            "while": self._parse_while,
            "with": self._parse_with,
        }

    def parse(self) -> Template:
        """Parse the whole text.

        Raises:
            ParseError: On malformed syntax or directive misuse
        """
        body, _ = self._parse_markup(in_block=False)
        return Template(
            lineno=1,
            col_offset=0,
            body=tuple(body),
            name=self._name,
            model=self._model,
            inherits=self._inherits,
            layout=self._layout,
            usings=tuple(self._usings),
            functions=tuple(self._functions),
        )

    def _error(
        self,
        message: str,
        offset: int | None = None,
        *,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ) -> ParseError:
        """Build a ParseError located at ``offset`` (default: current position)."""
        return ParseError(
            message,
            self._scanner.position(offset),
            template_key=self._name,
            source=self._source,
            suggestion=suggestion,
            code=code,
        )

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def _parse_markup(self, in_block: bool) -> tuple[list[Node], bool]:
        """Parse markup until the end of text or, in a block, an unbalanced '}'.

        Returns:
            (nodes, closed) where ``closed`` is True when a block's '}' was
            reached; the scanner is left on that '}'
        """
        sc = self._scanner
        src = sc.source
        pattern = _BLOCK_SPECIAL if in_block else _TOP_SPECIAL
        nodes: list[Node] = []
        text: list[str] = []
        text_start = sc.pos
        depth = 0

        while True:
            m = pattern.search(src, sc.pos)
            if m is None:
                text.append(src[sc.pos :])
                sc.pos = len(src)
                self._flush_text(nodes, text, text_start)
                return nodes, False

            i = m.start()
            ch = src[i]
            if ch == "{":
                depth += 1
                text.append(src[sc.pos : i + 1])
                sc.pos = i + 1
                continue
            if ch == "}":
                if depth:
                    depth -= 1
                    text.append(src[sc.pos : i + 1])
                    sc.pos = i + 1
                    continue
                text.append(src[sc.pos : i])
                sc.pos = i
                self._flush_text(nodes, text, text_start)
                return nodes, True

            # '@'
            text.append(src[sc.pos : i])
            sc.pos = i
            nxt = sc.peek(1)
            if i > 0 and src[i - 1].isalnum() and nxt and is_ident_char(nxt):
                # e-mail address
                text.append("@")
                sc.pos = i + 1
                continue
            if nxt == "@":
                text.append("@")
                sc.pos = i + 2
                continue
            if nxt == "*":
                self._skip_comment(i)
                continue

            self._flush_text(nodes, text, text_start)
            node, statement = self._parse_transition(i)
            if statement and sc.skip_line_end():
                self._trim_line_indent(nodes)
            if node is not None:
                nodes.append(node)
            text_start = sc.pos

    def _flush_text(self, nodes: list[Node], text: list[str], start: int) -> None:
        value = "".join(text)
        text.clear()
        if not value:
            return
        if self._imports_mode:
            if value.strip():
                offset = start + len(value) - len(value.lstrip())
                raise self._error(
                    "Imports files may only contain directives",
                    offset,
                    suggestion="Move markup into a template or a layout",
                    code=ErrorCode.DIRECTIVE_MISUSE,
                )
            return
        pos = self._scanner.position(start)
        nodes.append(Text(lineno=pos.line, col_offset=pos.column, value=value))

    @staticmethod
    def _trim_line_indent(nodes: list[Node]) -> None:
        """Drop the indentation before a statement that occupied its own line."""
        if not nodes or not isinstance(nodes[-1], Text):
            return
        last = nodes[-1]
        value = last.value
        cut = value.rfind("\n") + 1
        if value[cut:].strip(" \t"):
            return
        if cut == 0 and last.col_offset != 0:
            return
        if cut:
            nodes[-1] = Text(lineno=last.lineno, col_offset=last.col_offset, value=value[:cut])
        else:
            nodes.pop()

    def _skip_comment(self, start: int) -> None:
        sc = self._scanner
        end = sc.source.find("*@", start + 2)
        if end == -1:
            raise self._error(
                "Comment is never closed",
                start,
                suggestion="End the comment with '*@'",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        sc.pos = end + 2

    def _parse_block_body(self, brace: int, what: str, start: int) -> tuple[Node, ...]:
        """Parse ``{ markup }`` whose '{' is at ``brace``; leave the scanner after '}'.

        Args:
            brace: Offset of the opening brace
            what: Description used in the "never closed" error
            start: Offset of the construct, where that error points
        """
        sc = self._scanner
        sc.pos = brace + 1
        sc.skip_line_end()
        self._block_depth += 1
        try:
            body, closed = self._parse_markup(in_block=True)
        finally:
            self._block_depth -= 1
        if not closed:
            raise self._error(
                f"{what} is never closed",
                start,
                suggestion="Add the matching '}'",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        self._trim_closing_indent(body)
        sc.pos += 1  # consume '}'
        return tuple(body)

    @staticmethod
    def _trim_closing_indent(body: list[Node]) -> None:
        """Drop whitespace between the last newline of a block and its '}'."""
        if not body or not isinstance(body[-1], Text):
            return
        last = body[-1]
        cut = last.value.rfind("\n") + 1
        if last.value[cut:].strip(" \t") or (cut == 0 and last.col_offset != 0):
            return
        if cut:
            body[-1] = Text(lineno=last.lineno, col_offset=last.col_offset, value=last.value[:cut])
        else:
            body.pop()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _parse_transition(self, start: int) -> tuple[Node | None, bool]:
        """Parse the construct at '@'.

        Returns:
            (node or None, whether it is statement-like and may own its line)
        """
        sc = self._scanner
        nxt = sc.peek(1)

        if nxt == "(":
            self._reject_in_imports("Expressions", start)
            return self._parse_explicit_expression(start), False
        if nxt == "{":
            self._reject_in_imports("Code blocks", start)
            return self._parse_code_block(start), True
        if nxt and is_ident_start(nxt):
            word = sc.match_identifier(start + 1) or ""
            if self._is_keyword(word, start + 1 + len(word)):
                if word in _ORPHAN_KEYWORDS:
                    raise self._error(
                        f"'@{word}' without a preceding '@{_ORPHAN_KEYWORDS[word]}' block",
                        start,
                        suggestion=f"Write '{word}' directly after the closing '}}' of the block",
                        code=ErrorCode.DIRECTIVE_MISUSE,
                    )
                if self._imports_mode and word not in _IMPORTS_KEYWORDS and word != "model":
                    self._reject_in_imports(f"'@{word}' blocks", start)
                return self._handlers[word](start), True
            self._reject_in_imports("Expressions", start)
            return self._parse_implicit_expression(start), False

        if not nxt:
            raise self._error(
                "Unexpected end of template after '@'",
                start,
                suggestion="Use '@@' for a literal '@'",
            )
        raise self._error(
            f"Unexpected character {nxt!r} after '@'",
            start,
            suggestion="Use '@@' for a literal '@', or '@( ... )' for an expression",
        )

    def _is_keyword(self, word: str, end: int) -> bool:
        """Whether ``word`` ending at ``end`` is used as a directive keyword.

        ``@model.Name`` is an expression; ``@model myapp.Person`` is a directive.
        """
        if word not in self._handlers and word not in _ORPHAN_KEYWORDS:
            return False
        following = self._scanner.source[end : end + 1]
        if not following or following.isspace():
            return True
        return following in "({" and (word in _BRACKETED_KEYWORDS or word in _ORPHAN_KEYWORDS)

    def _reject_in_imports(self, what: str, start: int) -> None:
        if self._imports_mode:
            raise self._error(
                f"{what} are not allowed in an imports file",
                start,
                suggestion="Imports files may only contain @using, @inherits, @layout and @functions",
                code=ErrorCode.DIRECTIVE_MISUSE,
            )

    def _parse_implicit_expression(self, start: int) -> Expression:
        """Parse @name followed by any chain of .attr, [index] and (call)."""
        sc = self._scanner
        src = sc.source
        i = start + 1
        i += len(sc.match_identifier(i) or "")
        while i < len(src):
            ch = src[i]
            if ch == "." and i + 1 < len(src) and is_ident_start(src[i + 1]):
                i += 1 + len(sc.match_identifier(i + 1) or "")
            elif ch in "([":
                close = sc.find_closing(i + 1, ch, ")" if ch == "(" else "]")
                if close == -1:
                    raise self._error(
                        f"Unclosed {ch!r} in expression",
                        i,
                        code=ErrorCode.UNCLOSED_BLOCK,
                    )
                i = close + 1
            else:
                break
        sc.pos = i
        pos = sc.position(start + 1)
        return Expression(lineno=pos.line, col_offset=pos.column, source=src[start + 1 : i])

    def _parse_explicit_expression(self, start: int) -> Expression:
        """Parse @( expr )."""
        sc = self._scanner
        close = sc.find_closing(start + 2, "(", ")")
        if close == -1:
            raise self._error(
                "Unclosed '@(' expression",
                start,
                suggestion="Add the matching ')'",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        source = sc.source[start + 2 : close]
        if not source.strip():
            raise self._error("Empty expression", start, code=ErrorCode.INVALID_DIRECTIVE)
        sc.pos = close + 1
        pos = sc.position(start + 2)
        return Expression(lineno=pos.line, col_offset=pos.column, source=source, explicit=True)

    def _parse_code_block(self, start: int) -> CodeBlock:
        """Parse @{ statements }."""
        sc = self._scanner
        close = sc.find_closing(start + 2, "{", "}")
        if close == -1:
            raise self._error(
                "Code block is never closed",
                start,
                suggestion="Add the matching '}'",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        lines = self._code_lines(start + 2, close)
        sc.pos = close + 1
        pos = sc.position(start)
        return CodeBlock(lineno=pos.line, col_offset=pos.column, lines=lines)

    def _code_lines(self, begin: int, end: int) -> tuple[CodeLine, ...]:
        """Split ``source[begin:end]`` into dedented, position-tagged code lines.

        When the brace line is empty the remaining lines lose their common
        indentation. Code on the brace line counts as indented to its own
        column: if it opens a block (ends with ``:``) the lines below keep
        their indentation relative to that column, otherwise they are
        dedented on their own. Blank lines are dropped.

        Raises:
            ParseError: A block opened on the brace line has a body that is
                not indented past the opening code
        """
        sc = self._scanner
        raw: list[tuple[int, str]] = []
        offset = begin
        for line in sc.source[begin:end].split("\n"):
            raw.append((offset, line))
            offset += len(line) + 1

        lines: list[CodeLine] = []
        rest = [(off, line.rstrip()) for off, line in raw[1:] if line.strip()]
        indents = [len(line) - len(line.lstrip()) for _, line in rest]
        common = min(indents, default=0)

        first_offset, first = raw[0]
        if first.strip():
            lead = len(first) - len(first.lstrip())
            pos = sc.position(first_offset + lead)
            lines.append(CodeLine(lineno=pos.line, col_offset=pos.column, text=first.strip()))
            if first.split("#", 1)[0].rstrip().endswith(":") and rest:
                column = first_offset + lead - (sc.source.rfind("\n", 0, first_offset) + 1)
                if common <= column:
                    off, _ = rest[indents.index(common)]
                    raise self._error(
                        f"Block opened by '{first.strip()}' needs its body indented past column {column + 1}",
                        off + common,
                        suggestion="Start the code on a new line after the opening brace",
                        code=ErrorCode.UNEXPECTED_CHARACTER,
                    )
                common = column

        for off, line in rest:
            pos = sc.position(off + common)
            lines.append(CodeLine(lineno=pos.line, col_offset=pos.column, text=line[common:]))
        return tuple(lines)


def parse(source: str, name: str | None = None, *, imports_mode: bool = False) -> Template:
    """Parse template text into a ``nodes.Template``.

    Raises:
        ParseError: On malformed syntax or directive misuse
    """
    return Parser(source, name, imports_mode=imports_mode).parse()
