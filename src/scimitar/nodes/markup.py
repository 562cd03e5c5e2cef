"""Markup nodes: literal text, expressions and code blocks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from scimitar.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Literal template text, written verbatim."""

    value: str


@dataclass(frozen=True, slots=True)
class Expression(Node):
    """Expression whose value is encoded and written: @Model.Name or @(a + b)"""

    source: str
    explicit: bool = False


@dataclass(frozen=True, slots=True)
class CodeLine(Node):
    """One dedented line of a code block; ``col_offset`` is where ``text`` starts."""

    text: str


@dataclass(frozen=True, slots=True)
class CodeBlock(Node):
    """Python statements executed in place: @{ ... }"""

    lines: Sequence[CodeLine]
