"""Template structure generation: sections.

A section becomes a nested function registered with the execute context;
the layout calls it through ``render_section``::

    def _section_Foot_1():
        write_literal('bye')
    define_section('Foot', _section_Foot_1)

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from scimitar._types import SourcePosition

if TYPE_CHECKING:
    from scimitar.generator.writer import SourceWriter
    from scimitar.nodes import Node, Section


class TemplateStructureMixin:
    """Mixin for generating section definitions."""

    if TYPE_CHECKING:
        _writer: SourceWriter

        def _gen_body(self, nodes: Sequence[Node]) -> None: ...

        def _unique_name(self, prefix: str) -> str: ...

    def _gen_section(self, node: Section) -> None:
        origin = SourcePosition(node.lineno, node.col_offset)
        func = self._unique_name(f"_section_{node.name}")
        self._writer.add_line(f"def {func}():", origin)
        self._gen_body(node.body)
        self._writer.add_line(f"define_section({node.name!r}, {func})", origin)
