"""Character-level scanning helpers for the template parser.

The parser never tokenizes embedded Python; it only needs to find where a
Python fragment ends. ``Scanner.find_closing`` does that by counting one
bracket pair while skipping string literals and comments.
"""

from __future__ import annotations

import re
from bisect import bisect_right

from scimitar._types import SourcePosition

_IDENT_RE = re.compile(r"[^\W\d]\w*")
_HEADER_OPENERS = {"(": ")", "[": "]"}


def is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class Scanner:
    """Offset-based cursor over template text with line/column lookup.

    Attributes:
        source: Full template text
        pos: Current offset
    """

    __slots__ = ("_line_starts", "pos", "source")

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def position(self, offset: int | None = None) -> SourcePosition:
        """Line/column of ``offset`` (default: current position)."""
        if offset is None:
            offset = self.pos
        index = bisect_right(self._line_starts, offset) - 1
        return SourcePosition(index + 1, offset - self._line_starts[index])

    def peek(self, ahead: int = 0) -> str:
        index = self.pos + ahead
        return self.source[index] if index < len(self.source) else ""

    def startswith(self, text: str, offset: int | None = None) -> bool:
        return self.source.startswith(text, self.pos if offset is None else offset)

    def match_identifier(self, offset: int | None = None) -> str | None:
        m = _IDENT_RE.match(self.source, self.pos if offset is None else offset)
        return m.group() if m else None

    def skip_inline_whitespace(self) -> None:
        src = self.source
        while self.pos < len(src) and src[self.pos] in " \t":
            self.pos += 1

    def skip_whitespace(self) -> None:
        src = self.source
        while self.pos < len(src) and src[self.pos] in " \t\r\n":
            self.pos += 1

    def rest_of_line(self) -> tuple[str, int]:
        """Read up to (not including) the next newline; return (text, start offset)."""
        start = self.pos
        end = self.source.find("\n", start)
        if end == -1:
            end = len(self.source)
        self.pos = end
        return self.source[start:end], start

    def skip_line_end(self) -> bool:
        """Consume trailing whitespace and the newline if nothing else is on the line."""
        src = self.source
        i = self.pos
        while i < len(src) and src[i] in " \t\r":
            i += 1
        if i >= len(src):
            self.pos = i
            return True
        if src[i] == "\n":
            self.pos = i + 1
            return True
        return False

    def skip_string(self, start: int) -> int:
        """Return the offset just past the string literal starting at ``start``.

        Unterminated single-line strings stop at the newline; unterminated
        triple-quoted strings run to the end of the text.
        """
        src = self.source
        quote = src[start]
        if src.startswith(quote * 3, start):
            end = start + 3
            closing = quote * 3
            while end < len(src):
                if src[end] == "\\":
                    end += 2
                    continue
                if src.startswith(closing, end):
                    return end + 3
                end += 1
            return len(src)
        end = start + 1
        while end < len(src):
            ch = src[end]
            if ch == "\\":
                end += 2
                continue
            if ch == quote:
                return end + 1
            if ch == "\n":
                return end
            end += 1
        return len(src)

    def find_closing(self, start: int, open_char: str, close_char: str) -> int:
        """Find the ``close_char`` balancing an already-consumed ``open_char``.

        Args:
            start: Offset just after the opening character

        Returns:
            Offset of the matching close character, or -1 if unbalanced
        """
        src = self.source
        depth = 1
        i = start
        n = len(src)
        while i < n:
            ch = src[i]
            if ch in "\"'":
                i = self.skip_string(i)
                continue
            if ch == "#":
                newline = src.find("\n", i)
                if newline == -1:
                    return -1
                i = newline
                continue
            if ch == open_char:
                depth += 1
            elif ch == close_char:
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return -1

    def find_block_open(self, start: int) -> int:
        """Find the ``{`` that opens a control block after a Python header.

        Parentheses, brackets and strings in the header are skipped, so
        set or dict literals in a header must be parenthesized.

        Returns:
            Offset of the opening brace, or -1 if none is found
        """
        src = self.source
        i = start
        n = len(src)
        while i < n:
            ch = src[i]
            if ch in "\"'":
                i = self.skip_string(i)
                continue
            if ch in _HEADER_OPENERS:
                close = self.find_closing(i + 1, ch, _HEADER_OPENERS[ch])
                if close == -1:
                    return -1
                i = close + 1
                continue
            if ch == "{":
                return i
            if ch == "}":
                return -1
            i += 1
        return -1
