"""Template root node."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from scimitar.nodes.base import Node
from scimitar.nodes.directives import (
    FunctionsBlock,
    InheritsDirective,
    LayoutDirective,
    ModelDirective,
    UsingDirective,
)


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node: renderable body plus the directives collected while parsing."""

    body: Sequence[Node]
    name: str | None = None
    model: ModelDirective | None = None
    inherits: InheritsDirective | None = None
    layout: LayoutDirective | None = None
    usings: Sequence[UsingDirective] = ()
    functions: Sequence[FunctionsBlock] = ()
