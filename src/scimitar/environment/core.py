"""scimitar Engine: the host-facing entry point.

There is no global default engine: hosts construct an Engine and pass it
around. One Engine owns one template cache, one compiler service and one
in-memory overlay of templates added at runtime.

Example:
    >>> engine = Engine(DictLoader({"hello.html": "Hello @Model.Name"}))
    >>> engine.run("hello.html", {"Name": "World"})
    'Hello World'

    >>> engine.run_compile("@(1 + 1)", "inline")
    '2'

Thread-Safety:
    All public methods may be called from any thread. Each template is
    compiled at most once per model type, even under concurrent first use.

"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from scimitar._types import CompileFailure, CompileOk, ParseFailure, model_type_id
from scimitar.cache import CacheInfo, TemplateCache
from scimitar.compiler.service import CompilerService
from scimitar.environment.config import DEFAULT_CONFIG, EngineConfig
from scimitar.environment.exceptions import CompilationError, ParseError
from scimitar.environment.loaders import ChoiceLoader, DictLoader, FileSystemLoader
from scimitar.runner import TemplateRunner, resolve_model

if TYPE_CHECKING:
    from scimitar._types import CompilationResult, CompiledTemplate
    from scimitar.compiler.references import ReferenceResolver
    from scimitar.environment.loaders import Loader
    from scimitar.template.model import ViewBag

logger = logging.getLogger(__name__)


class Engine:
    """Compiles, caches and runs templates.

    Args:
        loader: Source provider for template keys, or a template directory
            read with ``config.file_encoding``; templates added with
            ``add_template`` are always consulted first
        config: Engine settings (``DEFAULT_CONFIG`` when omitted)
        reference_resolver: Decides which modules generated code may import
        logger: Receives compiler diagnostics (module logger when omitted)

    """

    __slots__ = ("_cache", "_compiler", "_overlay", "_overlay_lock", "_runner", "config", "loader")

    def __init__(
        self,
        loader: Loader | str | Path | None = None,
        *,
        config: EngineConfig | None = None,
        reference_resolver: ReferenceResolver | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        if isinstance(loader, (str, Path)):
            loader = FileSystemLoader(loader, encoding=self.config.file_encoding)
        self.loader = loader
        self._overlay: dict[str, str] = {}
        self._overlay_lock = threading.Lock()
        overlay_loader = DictLoader(self._overlay)
        source_loader = ChoiceLoader([overlay_loader, loader]) if loader is not None else overlay_loader
        self._cache = TemplateCache()
        self._compiler = CompilerService(
            self.config,
            reference_resolver=reference_resolver,
            logger=logger,
        )
        self._runner = TemplateRunner(source_loader, self._cache, self._compiler, self.config)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def run(
        self,
        key: str,
        model: Any = None,
        model_type: type | None = None,
        view_bag: ViewBag | Mapping[str, Any] | None = None,
    ) -> str:
        """Render the template ``key`` (and its layouts) against ``model``.

        ``model_type`` defaults to ``type(model)``; mappings and None render
        as dynamic models.

        Raises:
            TemplateNotFoundError: No source for ``key`` or a layout/include
            ParseError: Malformed template syntax
            CompilationError: Generated code rejected by the toolchain
            LayoutCycleError: Layout chain revisits a template or is too long
            ExecutionError: Fault while running the template
        """
        return self._runner.run(key, model, model_type, view_bag)

    async def run_async(
        self,
        key: str,
        model: Any = None,
        model_type: type | None = None,
        view_bag: ViewBag | Mapping[str, Any] | None = None,
    ) -> str:
        """``run`` in a worker thread.

        Cancelling the awaiting task does not cancel a compilation that other
        callers share; the worker finishes and the result is cached.
        """
        return await asyncio.to_thread(self._runner.run, key, model, model_type, view_bag)

    def run_compile(
        self,
        template: str,
        key: str,
        model: Any = None,
        model_type: type | None = None,
        view_bag: ViewBag | Mapping[str, Any] | None = None,
    ) -> str:
        """Register ``template`` under ``key`` and run it."""
        self.add_template(key, template)
        return self.run(key, model, model_type, view_bag)

    def from_string(self, source: str, key: str | None = None) -> Template:
        """Register ``source`` and return a handle for rendering it.

        Example:
            >>> t = engine.from_string("Hi @Model.name")
            >>> t.render({"name": "Ada"})
            'Hi Ada'
        """
        if key is None:
            key = f"<string:{hashlib.sha256(source.encode()).hexdigest()[:12]}>"
        self.add_template(key, source)
        return Template(self, key)

    # ------------------------------------------------------------------
    # Templates and compilation
    # ------------------------------------------------------------------

    def add_template(self, key: str, template: str) -> None:
        """Add or replace an in-memory template.

        Changed text invalidates the compiled entries for ``key``; a changed
        imports file invalidates the whole cache.
        """
        with self._overlay_lock:
            previous = self._overlay.get(key)
            self._overlay[key] = template
        if previous == template:
            return
        if key.rsplit("/", 1)[-1] == self.config.imports_file_name:
            logger.debug("Imports file '%s' changed; clearing the template cache", key)
            self._cache.clear()
        else:
            self._cache.invalidate(key)

    def compile(self, key: str, model_type: type | None = None) -> CompiledTemplate:
        """Compile ``key`` for ``model_type`` (cached) without rendering it.

        Raises:
            TemplateNotFoundError, ParseError, CompilationError
        """
        return self._runner.get_compiled(key, model_type)

    def try_compile(self, key: str, model_type: type | None = None) -> CompilationResult:
        """Compile ``key`` and report the outcome as a value.

        Raises:
            TemplateNotFoundError: No source for ``key``
        """
        try:
            return CompileOk(self.compile(key, model_type))
        except ParseError as exc:
            return ParseFailure(exc)
        except CompilationError as exc:
            return CompileFailure(exc)

    def get_generated_code(self, key: str, model_type: type | None = None) -> str:
        """The Python module generated for ``key``, for inspection."""
        return self._runner.generate_unit(key, model_type).source_text

    def list_templates(self) -> list[str]:
        templates = set(self._overlay)
        if self.loader is not None:
            templates.update(self.loader.list_templates())
        return sorted(templates)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def is_template_cached(self, key: str, model_type: type | None = None) -> bool:
        return self._cache.contains(key, model_type_id(model_type))

    def invalidate(self, key: str, model_type: type | None = None) -> int:
        """Drop compiled entries for ``key``: one model type, or all when None."""
        return self._cache.invalidate(key, model_type_id(model_type) if model_type is not None else None)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_info(self) -> CacheInfo:
        return self._cache.info()

    def __repr__(self) -> str:
        return f"<Engine loader={self.loader!r} cached={len(self._cache)}>"


class Template:
    """Handle to one template key of an Engine.

    Example:
        >>> page = engine.from_string("<h1>@ViewBag.title</h1>")
        >>> page.render(title="Home")
        '<h1>Home</h1>'
    """

    __slots__ = ("_engine", "key")

    def __init__(self, engine: Engine, key: str):
        self._engine = engine
        self.key = key

    def render(self, model: Any = None, /, **view_bag: Any) -> str:
        """Render with ``model``; keyword arguments become the view bag."""
        return self._engine.run(self.key, model, view_bag=view_bag)

    async def render_async(self, model: Any = None, /, **view_bag: Any) -> str:
        return await self._engine.run_async(self.key, model, view_bag=view_bag)

    def compile(self, model_type: type | None = None) -> CompiledTemplate:
        return self._engine.compile(self.key, model_type)

    @property
    def generated_code(self) -> str:
        return self._engine.get_generated_code(self.key)

    def is_cached_for(self, model: Any = None) -> bool:
        _, model_type = resolve_model(model, None)
        return self._engine.is_template_cached(self.key, model_type)

    def __repr__(self) -> str:
        return f"<Template {self.key!r}>"
