"""Basic statement generation: literal text, expressions and code blocks.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scimitar._types import SourcePosition

if TYPE_CHECKING:
    from scimitar.generator.writer import SourceWriter
    from scimitar.nodes import CodeBlock, CodeLine, Expression, Text


class BasicStatementMixin:
    """Mixin for generating output and code-block statements."""

    if TYPE_CHECKING:
        _writer: SourceWriter

    def _gen_text(self, node: Text) -> None:
        """Literal text: write_literal('...')"""
        if not node.value:
            return
        self._writer.add_line(
            f"write_literal({node.value!r})",
            SourcePosition(node.lineno, node.col_offset),
        )

    def _gen_expression(self, node: Expression) -> None:
        """Encoded output: write(expr)

        Expressions spanning lines or carrying a comment are wrapped so the
        closing parenthesis is never swallowed:

            write((
            items[
                0]
            ))
        """
        source = node.source
        if "\n" not in source and "#" not in source:
            self._writer.add_line(
                f"write({source})",
                SourcePosition(node.lineno, node.col_offset),
                offset=len("write("),
            )
            return
        self._writer.add_line("write((", SourcePosition(node.lineno, node.col_offset))
        for index, line in enumerate(source.split("\n")):
            column = node.col_offset if index == 0 else 0
            self._writer.add_verbatim(line, SourcePosition(node.lineno + index, column))
        self._writer.add_line("))")

    def _gen_code_lines(self, lines: tuple[CodeLine, ...] | list[CodeLine]) -> None:
        for line in lines:
            self._writer.add_line(line.text, SourcePosition(line.lineno, line.col_offset))

    def _gen_code_block(self, node: CodeBlock) -> None:
        """Code block lines, emitted in place at the current indentation."""
        self._gen_code_lines(node.lines)
