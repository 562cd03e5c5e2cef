"""Directive nodes: declarations that shape the generated class."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from scimitar.nodes.base import Node
from scimitar.nodes.markup import CodeLine


@dataclass(frozen=True, slots=True)
class ModelDirective(Node):
    """Model type declaration: @model myapp.models.Person"""

    type_path: str


@dataclass(frozen=True, slots=True)
class InheritsDirective(Node):
    """Base class declaration: @inherits myapp.templates.PageBase"""

    base_path: str


@dataclass(frozen=True, slots=True)
class UsingDirective(Node):
    """Namespace import: @using datetime / @using os.path as osp / @using math import pi"""

    namespace: str


@dataclass(frozen=True, slots=True)
class LayoutDirective(Node):
    """Layout reference: @layout "base.html" """

    expression: str


@dataclass(frozen=True, slots=True)
class FunctionsBlock(Node):
    """Class members: @functions { def helper(self): ... }"""

    lines: Sequence[CodeLine]


@dataclass(frozen=True, slots=True)
class Section(Node):
    """Named section consumed by the layout: @section Foot { ... }"""

    name: str
    body: Sequence[Node]
