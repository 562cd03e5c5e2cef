"""Core data types shared across the scimitar pipeline.

Pipeline:
    TemplateSource → Parser → nodes → CodeGenerator → GeneratedUnit
    → CompilerService → CompiledTemplate → TemplateCache → instance.execute()

All types here are immutable. ``CompiledTemplate`` is shared read-only across
concurrent renders; every other type is transient.

"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scimitar.compiler.references import CompilerReference
    from scimitar.environment.exceptions import CompilationError, ParseError
    from scimitar.template.base import TemplateBase


DYNAMIC_MODEL_TYPE_ID = "dynamic"


def model_type_id(model_type: type | None) -> str:
    """Stable identifier for a model type, used as half of the cache key.

    Example:
        >>> model_type_id(None)
        'dynamic'
        >>> model_type_id(dict)
        'builtins.dict'
    """
    if model_type is None:
        return DYNAMIC_MODEL_TYPE_ID
    return f"{model_type.__module__}.{model_type.__qualname__}"


@dataclass(frozen=True, slots=True)
class SourcePosition:
    """Position in template text: 1-based line, 0-based column."""

    line: int
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class TemplateSource:
    """A named unit of raw template text.

    Attributes:
        key: Template key (cache and lookup identity)
        content: Template text
        file_path: Physical location, when the source came from a file
    """

    key: str
    content: str
    file_path: str | None = None

    @property
    def display_name(self) -> str:
        return self.file_path or self.key


@dataclass(frozen=True, slots=True)
class TypeContext:
    """Everything the generator and compiler need to know about the type to build.

    ``class_name`` and ``model_type`` together determine the identity of the
    generated type.
    """

    class_name: str
    template_base_type: type[TemplateBase]
    model_type: type | None = None
    namespaces: frozenset[str] = frozenset()
    references: tuple[CompilerReference, ...] = ()

    def __post_init__(self) -> None:
        if not self.class_name or not self.class_name.isidentifier():
            raise ValueError(f"Invalid generated class name: {self.class_name!r}")
        if self.template_base_type is None:
            raise ValueError("A template base type is required")

    @property
    def model_type_id(self) -> str:
        return model_type_id(self.model_type)


@dataclass(frozen=True, slots=True)
class MappedLine:
    """Origin of one generated line.

    ``generated_column`` is where the mapped template text starts inside the
    generated line, so columns can be translated back.
    """

    generated_line: int
    position: SourcePosition
    generated_column: int = 0


@dataclass(frozen=True, slots=True)
class SourceMap:
    """Maps generated source lines back to template positions.

    Lines that were emitted without an origin (imports, helper bindings)
    resolve to the nearest preceding mapped line.
    """

    lines: tuple[MappedLine, ...] = ()

    def lookup(self, generated_line: int, generated_column: int | None = None) -> SourcePosition | None:
        """Translate a generated (line, column) to a template position."""
        if not self.lines:
            return None
        index = bisect_right([m.generated_line for m in self.lines], generated_line) - 1
        if index < 0:
            return None
        mapped = self.lines[index]
        if mapped.generated_line != generated_line or generated_column is None:
            return mapped.position
        offset = max(0, generated_column - mapped.generated_column)
        return SourcePosition(mapped.position.line, mapped.position.column + offset)


@dataclass(frozen=True, slots=True)
class GeneratedUnit:
    """Output of the code generator, input of the compiler service."""

    template_key: str
    class_name: str
    source_text: str
    source_map: SourceMap = field(default_factory=SourceMap)
    source_path: str | None = None
    template_text: str | None = None


class Severity(Enum):
    """Diagnostic severity reported by the toolchain."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single toolchain diagnostic.

    ``position`` is in generated source; ``template_position`` is filled in by
    the compiler service when the source map can translate it.
    """

    severity: Severity
    message: str
    position: SourcePosition | None = None
    template_position: SourcePosition | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        where = self.template_position or self.position
        prefix = f"{where}: " if where else ""
        return f"{prefix}{self.severity.value}: {self.message}"


@dataclass(frozen=True, slots=True)
class CompiledTemplate:
    """A loaded template class plus what is needed to report errors from it.

    ``create()`` is the per-render factory; instances are never shared.
    """

    template_key: str
    template_type: type[TemplateBase]
    filename: str
    model_type_id: str = DYNAMIC_MODEL_TYPE_ID
    source_map: SourceMap = field(default_factory=SourceMap)
    template_text: str | None = None

    def create(self) -> TemplateBase:
        return self.template_type()


@dataclass(frozen=True, slots=True)
class CacheKey:
    template_key: str
    model_type_id: str


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: CacheKey
    compiled: CompiledTemplate
    created_at: datetime


@dataclass(frozen=True, slots=True)
class CompileOk:
    compiled: CompiledTemplate


@dataclass(frozen=True, slots=True)
class ParseFailure:
    error: ParseError


@dataclass(frozen=True, slots=True)
class CompileFailure:
    error: CompilationError


CompilationResult = CompileOk | ParseFailure | CompileFailure


@dataclass(frozen=True, slots=True)
class RenderChain:
    """Templates currently rendering on one logical render path.

    Threaded explicitly through recursive renders so cycle detection does not
    depend on thread-local state.

    Attributes:
        layout_keys: Child first, then each layout entered
        include_depth: Number of include boundaries crossed
    """

    layout_keys: tuple[str, ...]
    include_depth: int = 0

    @classmethod
    def start(cls, key: str) -> RenderChain:
        return cls(layout_keys=(key,))

    def enter_layout(self, key: str, max_depth: int) -> RenderChain:
        """Return the chain extended with a layout.

        Raises:
            LayoutCycleError: If ``key`` is already rendering on this chain
            LayoutDepthError: If the chain would exceed ``max_depth``
        """
        from scimitar.environment.exceptions import LayoutCycleError, LayoutDepthError

        chain = (*self.layout_keys, key)
        if key in self.layout_keys:
            raise LayoutCycleError(chain)
        if len(chain) > max_depth:
            raise LayoutDepthError(chain, max_depth)
        return RenderChain(layout_keys=chain, include_depth=self.include_depth)

    def enter_include(self, key: str, max_depth: int) -> RenderChain:
        """Return a fresh layout chain for an included template.

        Raises:
            IncludeDepthError: If includes nest deeper than ``max_depth``
        """
        if self.include_depth >= max_depth:
            from scimitar.environment.exceptions import IncludeDepthError

            raise IncludeDepthError(key, max_depth, self.layout_keys[0])
        return RenderChain(layout_keys=(key,), include_depth=self.include_depth + 1)


def dotted_parts(path: str) -> Sequence[str]:
    """Split a dotted Python path, returning () when it is not one."""
    parts = path.split(".")
    if all(part.isidentifier() for part in parts):
        return parts
    return ()
