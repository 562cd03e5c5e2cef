"""Control flow nodes.

Conditions and loop headers are kept as Python text; the Python toolchain
checks them when the generated module is compiled.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from scimitar.nodes.base import Node


@dataclass(frozen=True, slots=True)
class ElifClause(Node):
    test: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional: @if cond { } elif cond { } else { }"""

    test: str
    body: Sequence[Node]
    elif_: Sequence[ElifClause] = ()
    else_: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class For(Node):
    """Loop: @for item in items { } empty { }"""

    header: str
    body: Sequence[Node]
    empty: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class While(Node):
    """Loop: @while cond { }"""

    test: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class With(Node):
    """Context manager: @with open_thing() as thing { }"""

    header: str
    body: Sequence[Node]
