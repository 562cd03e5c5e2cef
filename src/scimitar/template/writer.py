"""Deferred output returned by ``render_body``, ``render_section`` and friends."""

from __future__ import annotations

from collections.abc import Callable
from io import StringIO
from typing import TextIO


class TemplateWriter:
    """Output produced on demand into whichever writer receives it.

    Writing a TemplateWriter from a template streams it straight into the
    current writer; ``str()`` renders it into a fresh buffer.

    Example:
        >>> w = TemplateWriter(lambda out: out.write("<p>hi</p>"))
        >>> str(w)
        '<p>hi</p>'
    """

    __slots__ = ("_action",)

    def __init__(self, action: Callable[[TextIO], None]):
        self._action = action

    def write_to(self, writer: TextIO) -> None:
        self._action(writer)

    def __str__(self) -> str:
        buffer = StringIO()
        self._action(buffer)
        return buffer.getvalue()

    def __html__(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"<TemplateWriter {self._action!r}>"


def _write_nothing(writer: TextIO) -> None:
    return None


EMPTY_WRITER = TemplateWriter(_write_nothing)


def text_writer(text: str) -> TemplateWriter:
    """A writer that replays already-rendered text."""

    def replay(writer: TextIO) -> None:
        writer.write(text)

    return TemplateWriter(replay)
