"""Template runner: resolve, compile through the cache, execute.

Render of ``page.html`` whose layout is ``_layout.html``:

    ```
    run("page.html")
    ├── cache.get_or_compile("page.html", type id)    # generate + compile on miss
    ├── instance.run(context, buffer)                 # child output buffered
    ├── chain.enter_layout("_layout.html")            # cycle / depth check
    ├── context.push_body_writer(child output)
    └── context.enter_nested_render(render layout)    # render_body() pops it
    ```

Exceptions escaping generated code are wrapped in ``ExecutionError`` once,
at the top-level render or include boundary, with the template position of
the innermost generated frame. Template errors pass through unchanged.

"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping, Sequence
from functools import partial
from io import StringIO
from typing import TYPE_CHECKING, Any

from scimitar._types import RenderChain, SourcePosition, TemplateSource, TypeContext, model_type_id
from scimitar.environment.exceptions import ExecutionError, TemplateError, build_source_snippet
from scimitar.generator import generate
from scimitar.template.execute_context import ExecuteContext
from scimitar.template.model import DynamicModel, ViewBag
from scimitar.template.writer import text_writer
from scimitar.utils.html import html_escape, no_escape

if TYPE_CHECKING:
    from types import TracebackType

    from scimitar._types import CompiledTemplate, GeneratedUnit
    from scimitar.cache import TemplateCache
    from scimitar.compiler.service import CompilerService
    from scimitar.environment.config import EngineConfig
    from scimitar.environment.loaders import Loader

logger = logging.getLogger(__name__)


def resolve_model(model: Any, model_type: type | None) -> tuple[Any, type | None]:
    """Pick the model type for a render and wrap mapping models.

    Without an explicit type, mappings render as dynamic models and any
    other object renders as its own type.
    """
    if model_type is not None:
        return model, model_type
    if model is None or isinstance(model, DynamicModel):
        return model, None
    if isinstance(model, Mapping):
        return DynamicModel(model), None
    return model, type(model)


def as_view_bag(view_bag: ViewBag | Mapping[str, Any] | None) -> ViewBag:
    if isinstance(view_bag, ViewBag):
        return view_bag
    return ViewBag(view_bag)


class TemplateRunner:
    """Runs templates for one Engine.

    The runner is stateless apart from its collaborators; every render gets
    its own ExecuteContext and RenderChain.
    """

    __slots__ = ("_cache", "_compiler", "_config", "_encoder", "_loader")

    def __init__(
        self,
        loader: Loader,
        cache: TemplateCache,
        compiler: CompilerService,
        config: EngineConfig,
    ):
        self._loader = loader
        self._cache = cache
        self._compiler = compiler
        self._config = config
        self._encoder = html_escape if config.encoding == "html" else no_escape

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def type_context(self, key: str, model_type: type | None) -> TypeContext:
        """TypeContext for ``key``; the class name is private and unique per (key, model type)."""
        digest = hashlib.sha256(f"{key}\0{model_type_id(model_type)}".encode()).hexdigest()[:16]
        return TypeContext(
            class_name=f"_Template_{digest}",
            template_base_type=self._config.template_base_type,
            model_type=model_type,
            namespaces=self._config.namespaces,
        )

    def get_compiled(self, key: str, model_type: type | None) -> CompiledTemplate:
        """Cached compiled template, compiling on a miss.

        Raises:
            TemplateNotFoundError, ParseError, CompilationError
        """
        return self._cache.get_or_compile(
            key,
            model_type_id(model_type),
            partial(self._compile_key, key, model_type),
        )

    def generate_unit(self, key: str, model_type: type | None) -> GeneratedUnit:
        """Read ``key`` and its imports files and generate its module (no compile)."""
        source, imports = self._read(key)
        return generate(source, self.type_context(key, model_type), imports)

    def _compile_key(self, key: str, model_type: type | None) -> CompiledTemplate:
        source, imports = self._read(key)
        return self.compile_source(source, model_type, imports)

    def compile_source(
        self,
        source: TemplateSource,
        model_type: type | None,
        imports: Sequence[TemplateSource] = (),
    ) -> CompiledTemplate:
        context = self.type_context(source.key, model_type)
        unit = generate(source, context, imports)
        return self._compiler.compile(unit, context)

    def _read(self, key: str) -> tuple[TemplateSource, list[TemplateSource]]:
        source = self._loader.get_source(key)
        imports = [
            TemplateSource(key=item.key, content=item.read_text(), file_path=item.physical_location)
            for item in self._loader.find_hierarchical_imports(key, self._config.imports_file_name)
        ]
        return source, imports

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(
        self,
        key: str,
        model: Any = None,
        model_type: type | None = None,
        view_bag: ViewBag | Mapping[str, Any] | None = None,
    ) -> str:
        """Render ``key`` and any layouts around it.

        Raises:
            TemplateNotFoundError, ParseError, CompilationError,
            LayoutCycleError, ExecutionError
        """
        model, model_type = resolve_model(model, model_type)
        return self._render_boundary(key, model, model_type, as_view_bag(view_bag), RenderChain.start(key))

    def _render_boundary(
        self,
        key: str,
        model: Any,
        model_type: type | None,
        view_bag: ViewBag,
        chain: RenderChain,
        is_nested: bool = False,
    ) -> str:
        """Render with a fresh ExecuteContext, wrapping foreign exceptions."""
        context = ExecuteContext()
        try:
            return self._render(key, model, model_type, view_bag, context, chain, is_nested)
        except TemplateError:
            raise
        except Exception as exc:
            raise self._execution_error(exc, key) from exc

    def _render(
        self,
        key: str,
        model: Any,
        model_type: type | None,
        view_bag: ViewBag,
        context: ExecuteContext,
        chain: RenderChain,
        is_nested: bool = False,
    ) -> str:
        compiled = self.get_compiled(key, model_type)
        instance = compiled.create()
        instance.bind(
            model,
            context,
            view_bag,
            includer=partial(self._include, view_bag=view_bag, chain=chain),
            encoder=self._encoder,
            is_nested=is_nested,
        )
        buffer = StringIO()
        instance.run(context, buffer)
        output = buffer.getvalue()

        layout = instance.layout
        if not layout:
            return output
        if not isinstance(layout, str):
            raise TypeError(f"layout must be a template key string, got {type(layout).__name__}")

        layout_chain = chain.enter_layout(layout, self._config.max_layout_depth)
        logger.debug("Rendering layout '%s' around '%s'", layout, key)
        depth = context.body_writer_depth
        context.push_body_writer(text_writer(output))
        try:
            return context.enter_nested_render(
                partial(self._render, layout, model, model_type, view_bag, context, layout_chain, True)
            )
        finally:
            # a layout that never called render_body() leaves its writer behind
            while context.body_writer_depth > depth:
                context.pop_body_writer()

    def _include(self, key: str, model: Any, *, view_bag: ViewBag, chain: RenderChain) -> str:
        include_chain = chain.enter_include(key, self._config.max_include_depth)
        model, model_type = resolve_model(model, None)
        logger.debug("Including '%s' from '%s'", key, chain.layout_keys[0])
        return self._render_boundary(key, model, model_type, view_bag, include_chain, is_nested=True)

    # ------------------------------------------------------------------
    # Error translation
    # ------------------------------------------------------------------

    def _execution_error(self, exc: Exception, key: str) -> ExecutionError:
        compiled, position = self._locate(exc.__traceback__)
        template_key = compiled.template_key if compiled is not None else key
        snippet = None
        if compiled is not None and position is not None and compiled.template_text:
            snippet = build_source_snippet(compiled.template_text, position.line, column=position.column)
        return ExecutionError(
            f"{type(exc).__name__}: {exc}",
            cause=exc,
            template_key=template_key,
            position=position,
            source_snippet=snippet,
        )

    def _locate(self, tb: TracebackType | None) -> tuple[CompiledTemplate | None, SourcePosition | None]:
        """Template and position of the innermost generated frame in ``tb``."""
        found: tuple[CompiledTemplate | None, SourcePosition | None] = (None, None)
        while tb is not None:
            code = tb.tb_frame.f_code
            compiled = self._compiler.compiled_for(code.co_filename)
            if compiled is not None:
                column = _generated_column(tb)
                found = (compiled, compiled.source_map.lookup(tb.tb_lineno, column))
            tb = tb.tb_next
        return found


def _generated_column(tb: TracebackType) -> int | None:
    """Column of the faulting instruction, when the interpreter records it."""
    positions = list(tb.tb_frame.f_code.co_positions())
    index = tb.tb_lasti // 2
    if 0 <= index < len(positions):
        lineno, _, column, _ = positions[index]
        if lineno == tb.tb_lineno:
            return column
    return None
