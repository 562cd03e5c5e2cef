"""Control flow block parsing for the scimitar parser.

Provides mixin for parsing if/elif/else, for/empty, while and with blocks.
Headers are Python text ending at the first ``{`` outside brackets and
strings; they are not checked here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scimitar.environment.exceptions import ErrorCode, ParseError
from scimitar.nodes import ElifClause, For, If, While, With
from scimitar.parser.scanner import is_ident_char

if TYPE_CHECKING:
    from scimitar.nodes import Node
    from scimitar.parser.scanner import Scanner


class ControlFlowParsingMixin:
    """Mixin for parsing control flow blocks.

    Required Host Attributes:
        - _scanner: Scanner
        - _error: method
        - _parse_block_body: method
    """

    if TYPE_CHECKING:
        _scanner: Scanner

        def _error(
            self,
            message: str,
            offset: int | None = None,
            *,
            suggestion: str | None = None,
            code: ErrorCode | None = None,
        ) -> ParseError: ...

        def _parse_block_body(self, brace: int, what: str, start: int) -> tuple[Node, ...]: ...

    def _parse_header(self, keyword: str, start: int, begin: int) -> tuple[str, int]:
        """Read a block header starting at ``begin``; leave the scanner on its '{'.

        Returns:
            (header text, offset of the header's first character)
        """
        sc = self._scanner
        brace = sc.find_block_open(begin)
        if brace == -1:
            raise self._error(
                f"Expected '{{' to open the '@{keyword}' block",
                start,
                suggestion="Parenthesize set or dict literals used in a block header",
                code=ErrorCode.UNCLOSED_BLOCK,
            )
        raw = sc.source[begin:brace]
        header = " ".join(part.strip() for part in raw.strip().splitlines())
        if not header:
            raise self._error(
                f"'@{keyword}' requires a condition",
                start,
                code=ErrorCode.INVALID_DIRECTIVE,
            )
        sc.pos = brace
        return header, begin + len(raw) - len(raw.lstrip())

    def _match_keyword(self, word: str) -> bool:
        sc = self._scanner
        if not sc.startswith(word):
            return False
        return not is_ident_char(sc.peek(len(word)))

    def _parse_if(self, start: int) -> If:
        """Parse @if cond { } elif cond { } else if cond { } else { }."""
        sc = self._scanner
        test, offset = self._parse_header("if", start, start + len("@if"))
        body = self._parse_block_body(sc.pos, "'@if' block", start)

        elif_: list[ElifClause] = []
        else_: tuple[Node, ...] = ()
        while True:
            resume = sc.pos
            sc.skip_whitespace()
            clause_start = sc.pos
            if self._match_keyword("elif"):
                clause_test, clause_offset = self._parse_header("elif", clause_start, clause_start + 4)
            elif self._match_keyword("else"):
                sc.pos += 4
                sc.skip_inline_whitespace()
                if self._match_keyword("if"):
                    clause_test, clause_offset = self._parse_header("else if", clause_start, sc.pos + 2)
                elif sc.peek() == "{":
                    else_ = self._parse_block_body(sc.pos, "'else' block", clause_start)
                    break
                else:
                    # Plain text that happens to start with "else"
                    sc.pos = resume
                    break
            else:
                sc.pos = resume
                break
            clause_body = self._parse_block_body(sc.pos, "'elif' block", clause_start)
            pos = sc.position(clause_offset)
            elif_.append(
                ElifClause(lineno=pos.line, col_offset=pos.column, test=clause_test, body=clause_body)
            )

        pos = sc.position(offset)
        return If(
            lineno=pos.line,
            col_offset=pos.column,
            test=test,
            body=body,
            elif_=tuple(elif_),
            else_=else_,
        )

    def _parse_for(self, start: int) -> For:
        """Parse @for target in iterable { } empty { }."""
        sc = self._scanner
        header, offset = self._parse_header("for", start, start + len("@for"))
        body = self._parse_block_body(sc.pos, "'@for' block", start)

        empty: tuple[Node, ...] = ()
        resume = sc.pos
        sc.skip_whitespace()
        clause_start = sc.pos
        if self._match_keyword("empty"):
            sc.pos += len("empty")
            sc.skip_inline_whitespace()
            if sc.peek() == "{":
                empty = self._parse_block_body(sc.pos, "'empty' block", clause_start)
            else:
                sc.pos = resume
        else:
            sc.pos = resume

        pos = sc.position(offset)
        return For(lineno=pos.line, col_offset=pos.column, header=header, body=body, empty=empty)

    def _parse_while(self, start: int) -> While:
        """Parse @while cond { }."""
        sc = self._scanner
        test, offset = self._parse_header("while", start, start + len("@while"))
        body = self._parse_block_body(sc.pos, "'@while' block", start)
        pos = sc.position(offset)
        return While(lineno=pos.line, col_offset=pos.column, test=test, body=body)

    def _parse_with(self, start: int) -> With:
        """Parse @with expr as name { }."""
        sc = self._scanner
        header, offset = self._parse_header("with", start, start + len("@with"))
        body = self._parse_block_body(sc.pos, "'@with' block", start)
        pos = sc.position(offset)
        return With(lineno=pos.line, col_offset=pos.column, header=header, body=body)
