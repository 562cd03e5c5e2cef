"""Compiler service: GeneratedUnit → CompiledTemplate.

Steps:
    1. Resolve and import references, bind them in a fresh module namespace
       together with ``__template_base__``.
    2. Build the source with the toolchain; log warnings, fail on errors.
    3. Load the code object from the in-memory binary and execute the module
       body, then pick up the generated class.

Every error diagnostic is reported at its template position when the source
map can translate it. Nothing is cached here; the template cache owns that.
"""

from __future__ import annotations

import builtins
import linecache
import logging
import marshal
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from scimitar._types import CompiledTemplate, Diagnostic, Severity, SourcePosition
from scimitar.compiler.references import (
    ReferenceResolver,
    UseCurrentModulesReferenceResolver,
    default_references,
)
from scimitar.compiler.toolchain import CompileOptions, PythonToolchain, Toolchain
from scimitar.environment.config import DEFAULT_CONFIG, EngineConfig
from scimitar.environment.exceptions import CompilationError
from scimitar.template.base import TemplateBase

if TYPE_CHECKING:
    from types import TracebackType

    from scimitar._types import GeneratedUnit, SourceMap, TypeContext


class CompilerService:
    """Compile generated units into loaded template classes.

    Keeps a registry of the filenames it has produced so the runner can map
    tracebacks from generated code back to template positions.

    Thread-Safety:
        ``compile`` may run concurrently for different units; the registry
        is a plain dict updated with single assignments.
    """

    __slots__ = ("_config", "_logger", "_registry", "_resolver", "_toolchain")

    def __init__(
        self,
        config: EngineConfig = DEFAULT_CONFIG,
        *,
        toolchain: Toolchain | None = None,
        reference_resolver: ReferenceResolver | None = None,
        logger: logging.Logger | None = None,
    ):
        self._config = config
        self._toolchain: Toolchain = toolchain or PythonToolchain()
        self._resolver: ReferenceResolver = reference_resolver or UseCurrentModulesReferenceResolver()
        self._logger = logger or logging.getLogger(__name__)
        self._registry: dict[str, CompiledTemplate] = {}

    def compile(self, unit: GeneratedUnit, context: TypeContext) -> CompiledTemplate:
        """Compile, load and validate ``unit``.

        Raises:
            CompilationError: On any error diagnostic, import failure while
                loading, or a generated class that is not a TemplateBase
        """
        start = time.perf_counter()
        filename = self._filename(unit)
        diagnostics: list[Diagnostic] = []

        namespace: dict[str, Any] = {
            "__name__": f"scimitar.generated.{unit.class_name}",
            "__file__": filename,
            "__builtins__": builtins,
            "__template_base__": context.template_base_type,
        }
        references = self._resolver.resolve(context, default_references(context))
        for reference in references:
            try:
                reference.load()
            except ImportError as exc:
                diagnostics.append(
                    Diagnostic(Severity.ERROR, f"Cannot import reference '{reference.module_name}': {exc}")
                )
                continue
            top = reference.module_name.partition(".")[0]
            namespace.setdefault(top, sys.modules[top])

        output = self._toolchain.build(unit.source_text, filename, CompileOptions(optimize=self._config.optimize))
        diagnostics.extend(_translate(d, unit.source_map) for d in output.diagnostics)
        self._report(unit, diagnostics)
        if output.binary is None or any(d.is_error for d in diagnostics):
            raise _compilation_error(unit, diagnostics)

        self._publish_source(unit, filename, output.binary)
        code = marshal.loads(output.binary)
        try:
            exec(code, namespace)
        except Exception as exc:
            position = _generated_position(exc.__traceback__, filename)
            diagnostics.append(
                Diagnostic(
                    Severity.ERROR,
                    f"{type(exc).__name__}: {exc}",
                    position,
                    unit.source_map.lookup(position.line) if position else None,
                )
            )
            raise _compilation_error(unit, diagnostics) from exc

        template_type = namespace.get(unit.class_name)
        if not (isinstance(template_type, type) and issubclass(template_type, TemplateBase)):
            diagnostics.append(
                Diagnostic(
                    Severity.ERROR,
                    f"Generated class '{unit.class_name}' does not derive from "
                    f"{TemplateBase.__module__}.{TemplateBase.__qualname__}",
                )
            )
            raise _compilation_error(unit, diagnostics)

        compiled = CompiledTemplate(
            template_key=unit.template_key,
            template_type=template_type,
            filename=filename,
            model_type_id=context.model_type_id,
            source_map=unit.source_map,
            template_text=unit.template_text,
        )
        self._registry[filename] = compiled
        self._logger.debug(
            "Compiled template '%s' as %s in %.2fms",
            unit.template_key,
            unit.class_name,
            (time.perf_counter() - start) * 1000,
        )
        return compiled

    def compiled_for(self, filename: str) -> CompiledTemplate | None:
        """The template whose generated code has ``filename``, if this service built it."""
        return self._registry.get(filename)

    def _filename(self, unit: GeneratedUnit) -> str:
        debug_directory = self._config.debug_directory
        if debug_directory is not None:
            return str(Path(debug_directory).resolve() / f"{unit.class_name}.py")
        return f"<scimitar {unit.template_key} {unit.class_name}>"

    def _publish_source(self, unit: GeneratedUnit, filename: str, binary: bytes) -> None:
        """Make the generated source visible to tracebacks."""
        debug_directory = self._config.debug_directory
        if debug_directory is not None:
            directory = Path(debug_directory)
            directory.mkdir(parents=True, exist_ok=True)
            Path(filename).write_text(unit.source_text, encoding="utf-8")
            (directory / f"{unit.class_name}.bin").write_bytes(binary)
            self._logger.debug("Wrote generated source for '%s' to %s", unit.template_key, filename)
            return
        lines = unit.source_text.splitlines(keepends=True)
        linecache.cache[filename] = (len(unit.source_text), None, lines, filename)

    def _report(self, unit: GeneratedUnit, diagnostics: list[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            if diagnostic.severity is Severity.WARNING:
                self._logger.warning("Template '%s': %s", unit.template_key, diagnostic)
            elif diagnostic.severity is Severity.INFO:
                self._logger.info("Template '%s': %s", unit.template_key, diagnostic)


def _translate(diagnostic: Diagnostic, source_map: SourceMap) -> Diagnostic:
    if diagnostic.position is None:
        return diagnostic
    template_position = source_map.lookup(diagnostic.position.line, diagnostic.position.column)
    return Diagnostic(diagnostic.severity, diagnostic.message, diagnostic.position, template_position)


def _generated_position(tb: TracebackType | None, filename: str) -> SourcePosition | None:
    """Line of the innermost traceback frame executing ``filename``."""
    position = None
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == filename:
            position = SourcePosition(tb.tb_lineno)
        tb = tb.tb_next
    return position


def _compilation_error(unit: GeneratedUnit, diagnostics: list[Diagnostic]) -> CompilationError:
    first = next((d for d in diagnostics if d.is_error), None)
    position = None
    mapped = False
    if first is not None:
        mapped = first.template_position is not None
        position = first.template_position or first.position
    return CompilationError(
        diagnostics,
        template_key=unit.template_key,
        first_error_position=position,
        generated_source=unit.source_text,
        template_source=unit.template_text if mapped else None,
    )
