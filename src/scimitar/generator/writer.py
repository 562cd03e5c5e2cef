"""Indented Python source builder that records a source map.

Lines are appended with the current indentation. A line emitted for a
template node carries that node's position plus the column where the
template text starts inside the generated line.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from scimitar._types import MappedLine, SourceMap, SourcePosition


class SourceWriter:
    """Build Python source text line by line.

    Example:
        >>> w = SourceWriter()
        >>> w.add_line("def f():")
        >>> with w.indented():
        ...     w.add_line("return x", SourcePosition(3, 2), offset=len("return "))
        >>> w.getvalue()
        'def f():\\n    return x\\n'
        >>> w.source_map().lookup(2, 11)
        SourcePosition(line=3, column=2)
    """

    INDENT_STEP = 4

    __slots__ = ("_indent", "_lines", "_mapped")

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._mapped: list[MappedLine] = []
        self._indent = 0

    @property
    def next_line(self) -> int:
        """1-based number the next emitted line will have."""
        return len(self._lines) + 1

    def add_line(self, code: str, origin: SourcePosition | None = None, *, offset: int = 0) -> None:
        """Add one line at the current indentation.

        Args:
            code: Line text without indentation
            origin: Template position of the text starting at ``offset``
            offset: Column of the template text inside ``code``
        """
        if origin is not None:
            self._mapped.append(MappedLine(self.next_line, origin, self._indent + offset))
        self._lines.append(" " * self._indent + code)

    def add_verbatim(self, code: str, origin: SourcePosition | None = None) -> None:
        """Add one line with no indentation (continuation inside brackets)."""
        if origin is not None:
            self._mapped.append(MappedLine(self.next_line, origin, 0))
        self._lines.append(code)

    def blank(self) -> None:
        self._lines.append("")

    def indent(self) -> None:
        self._indent += self.INDENT_STEP

    def dedent(self) -> None:
        self._indent -= self.INDENT_STEP

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.indent()
        try:
            yield
        finally:
            self.dedent()

    def getvalue(self) -> str:
        return "\n".join(self._lines) + "\n"

    def source_map(self) -> SourceMap:
        return SourceMap(tuple(self._mapped))
