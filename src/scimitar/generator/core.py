"""scimitar Code Generator: template nodes to Python source.

The generator emits Python *source text* rather than code objects, so that
embedded Python is checked by the Python toolchain in one place (the
compiler service) and every toolchain diagnostic can be mapped back to the
template through the ``SourceMap`` recorded while writing.

Generated module:

    ```python
    # Generated by scimitar from 'page.html'
    import myapp.models


    class _Template_3f2a9c(__template_base__):
        template_key = 'page.html'
        declared_model = myapp.models.Person

        def execute(self):
            Model = model = self.model
            ViewBag = self.view_bag
            write = self.write
            ...
            self.layout = '_layout.html'
            write_literal('Hello ')
            write(Model.Name)
    ```

Hierarchical imports files contribute ``@using``, ``@inherits``, ``@layout``
and ``@functions`` as defaults; the template's own directives win. A layout
taken from an imports file is skipped while the template renders as a
layout or an include.

"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from scimitar._types import GeneratedUnit, SourcePosition
from scimitar.generator.statements import StatementGenerationMixin
from scimitar.generator.writer import SourceWriter
from scimitar.nodes import (
    CodeBlock,
    Expression,
    For,
    If,
    Section,
    Text,
    While,
    With,
)
from scimitar.parser import parse
from scimitar.utils.namespaces import import_statement, normalize_namespace

if TYPE_CHECKING:
    from collections.abc import Callable

    from scimitar._types import TemplateSource, TypeContext
    from scimitar.nodes import InheritsDirective, LayoutDirective, Node
    from scimitar.nodes import Template as TemplateNode

# Helper names bound at the top of execute(); see TemplateBase
_HELPER_NAMES = (
    "write",
    "write_literal",
    "render_body",
    "render_section",
    "is_section_defined",
    "define_section",
    "include",
    "raw",
)


class CodeGenerator(StatementGenerationMixin):
    """Generate the Python module for one template and type context.

    Attributes:
        _context: TypeContext naming the class, base and model type
        _writer: SourceWriter receiving the module text
        _counter: Counter for unique local names (sections, empty flags)

    Node Dispatch:
        Uses O(1) dict lookup for node type → handler.

    """

    __slots__ = ("_context", "_counter", "_dispatch", "_writer")

    def __init__(self, type_context: TypeContext):
        self._context = type_context
        self._writer = SourceWriter()
        self._counter = 0
        self._dispatch: dict[type, Callable[[Node], None]] = {
            Text: self._gen_text,
            Expression: self._gen_expression,
            CodeBlock: self._gen_code_block,
            Section: self._gen_section,
            If: self._gen_if,
            For: self._gen_for,
            While: self._gen_while,
            With: self._gen_with,
        }

    def generate(self, source: TemplateSource, imports: Sequence[TemplateSource] = ()) -> GeneratedUnit:
        """Parse ``source`` (and its imports files) and emit the module.

        Args:
            source: The template
            imports: Imports files, outermost directory first

        Raises:
            ParseError: On malformed syntax in the template or an imports file
        """
        template = parse(source.content, source.key)
        import_nodes = [parse(item.content, item.key, imports_mode=True) for item in imports]
        self._emit_module(source, template, import_nodes)
        return GeneratedUnit(
            template_key=source.key,
            class_name=self._context.class_name,
            source_text=self._writer.getvalue(),
            source_map=self._writer.source_map(),
            source_path=source.file_path,
            template_text=source.content,
        )

    # ------------------------------------------------------------------
    # Module layout
    # ------------------------------------------------------------------

    def _emit_module(
        self,
        source: TemplateSource,
        template: TemplateNode,
        imports: Sequence[TemplateNode],
    ) -> None:
        w = self._writer
        inherits = _last_defined([t.inherits for t in (*imports, template)])
        import_layouts = [node.layout for node in imports if node.layout is not None]

        w.add_line(f"# Generated by scimitar from {source.key!r}")
        for statement, origin in self._import_lines(template, imports, inherits):
            w.add_line(statement, origin)
        w.blank()
        w.blank()

        # Positions from imports files belong to another text; map only our own
        base = inherits.base_path if inherits is not None else "__template_base__"
        if inherits is not None and inherits is template.inherits:
            w.add_line(
                f"class {self._context.class_name}({base}):",
                SourcePosition(inherits.lineno, inherits.col_offset),
                offset=len(f"class {self._context.class_name}("),
            )
        else:
            w.add_line(f"class {self._context.class_name}({base}):", SourcePosition(1, 0))
        with w.indented():
            w.add_line(f"template_key = {source.key!r}")
            if template.model is not None:
                w.add_line(
                    f"declared_model = {template.model.type_path}",
                    SourcePosition(template.model.lineno, template.model.col_offset),
                    offset=len("declared_model = "),
                )
            for block in (f for node in imports for f in node.functions):
                w.blank()
                for line in block.lines:
                    w.add_line(line.text)
            for block in template.functions:
                w.blank()
                self._gen_code_lines(block.lines)
            w.blank()
            w.add_line("def execute(self):")
            with w.indented():
                w.add_line("Model = model = self.model")
                w.add_line("ViewBag = self.view_bag")
                for helper in _HELPER_NAMES:
                    w.add_line(f"{helper} = self.{helper}")
                if template.layout is not None:
                    self._gen_layout(template.layout)
                elif import_layouts:
                    # defaults from imports files never wrap layouts or includes
                    w.add_line("if not self.is_nested:")
                    with w.indented():
                        for layout in import_layouts:
                            self._gen_layout(layout)
                for node in template.body:
                    self._dispatch[type(node)](node)

    def _import_lines(
        self,
        template: TemplateNode,
        imports: Sequence[TemplateNode],
        inherits: InheritsDirective | None,
    ) -> list[tuple[str, SourcePosition | None]]:
        """Sorted, de-duplicated import statements for the module header.

        Statements that come from the template's own directives keep the
        directive's position, so a failing import is reported there.
        """
        ctx = self._context
        origins: dict[str, SourcePosition | None] = {}

        def add(namespace: str, origin: SourcePosition | None = None) -> None:
            statement = import_statement(normalize_namespace(namespace) or namespace)
            if origins.get(statement) is None:
                origins[statement] = origin

        for namespace in ctx.namespaces:
            add(namespace)
        for namespace in getattr(ctx.template_base_type, "required_namespaces", ()):
            add(namespace)
        if ctx.model_type is not None:
            for namespace in getattr(ctx.model_type, "__template_namespaces__", ()):
                add(namespace)
        for node in imports:
            for using in node.usings:
                add(using.namespace)
        for using in template.usings:
            add(using.namespace, SourcePosition(using.lineno, using.col_offset))
        if template.model is not None:
            model = template.model
            add(model.type_path.rpartition(".")[0], SourcePosition(model.lineno, model.col_offset))
        if inherits is not None:
            origin = SourcePosition(inherits.lineno, inherits.col_offset) if inherits is template.inherits else None
            add(inherits.base_path.rpartition(".")[0], origin)

        # plain imports first, then from-imports, each alphabetically
        return sorted(origins.items(), key=lambda item: (item[0].startswith("from "), item[0]))

    def _gen_layout(self, node: LayoutDirective) -> None:
        self._writer.add_line(
            f"self.layout = {node.expression}",
            SourcePosition(node.lineno, node.col_offset),
            offset=len("self.layout = "),
        )

    # ------------------------------------------------------------------
    # Helpers used by the statement mixins
    # ------------------------------------------------------------------

    def _gen_body(self, nodes: Sequence[Node]) -> None:
        """Emit an indented block; empty blocks get ``pass``."""
        w = self._writer
        with w.indented():
            start = w.next_line
            for node in nodes:
                self._dispatch[type(node)](node)
            if w.next_line == start:
                w.add_line("pass")

    def _unique_name(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"


def _last_defined(items: Sequence[InheritsDirective | None]) -> InheritsDirective | None:
    for item in reversed(items):
        if item is not None:
            return item
    return None


def generate(
    source: TemplateSource,
    type_context: TypeContext,
    imports: Sequence[TemplateSource] = (),
) -> GeneratedUnit:
    """Generate the Python module for ``source``.

    Raises:
        ParseError: On malformed syntax in the template or an imports file
    """
    return CodeGenerator(type_context).generate(source, imports)
