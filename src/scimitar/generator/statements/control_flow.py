"""Control flow generation: if/elif/else, for/empty, while, with.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from scimitar._types import SourcePosition

if TYPE_CHECKING:
    from scimitar.generator.writer import SourceWriter
    from scimitar.nodes import For, If, Node, While, With


class ControlFlowMixin:
    """Mixin for generating Python control statements from template blocks."""

    if TYPE_CHECKING:
        _writer: SourceWriter

        def _gen_body(self, nodes: Sequence[Node]) -> None: ...

        def _unique_name(self, prefix: str) -> str: ...

    def _gen_header(self, keyword: str, header: str, node: Node) -> None:
        self._writer.add_line(
            f"{keyword} {header}:",
            SourcePosition(node.lineno, node.col_offset),
            offset=len(keyword) + 1,
        )

    def _gen_if(self, node: If) -> None:
        """@if cond { } elif cond { } else { }"""
        self._gen_header("if", node.test, node)
        self._gen_body(node.body)
        for clause in node.elif_:
            self._gen_header("elif", clause.test, clause)
            self._gen_body(clause.body)
        if node.else_:
            self._writer.add_line("else:")
            self._gen_body(node.else_)

    def _gen_for(self, node: For) -> None:
        """@for target in iterable { } empty { }

        An ``empty`` clause is driven by a flag cleared on the first iteration:

            _empty_1 = True
            for item in items:
                _empty_1 = False
                ...
            if _empty_1:
                ...
        """
        if not node.empty:
            self._gen_header("for", node.header, node)
            self._gen_body(node.body)
            return
        flag = self._unique_name("_empty")
        self._writer.add_line(f"{flag} = True")
        self._gen_header("for", node.header, node)
        with self._writer.indented():
            self._writer.add_line(f"{flag} = False")
        self._gen_body(node.body)
        self._writer.add_line(f"if {flag}:")
        self._gen_body(node.empty)

    def _gen_while(self, node: While) -> None:
        """@while cond { }"""
        self._gen_header("while", node.test, node)
        self._gen_body(node.body)

    def _gen_with(self, node: With) -> None:
        """@with expr as name { }"""
        self._gen_header("with", node.header, node)
        self._gen_body(node.body)
