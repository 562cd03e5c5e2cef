"""Engine configuration.

``EngineConfig`` is immutable; derive variants with ``with_options``:

    >>> config = DEFAULT_CONFIG.with_options(encoding="raw", max_layout_depth=4)
    >>> config.encoding, config.max_layout_depth
    ('raw', 4)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from scimitar.template.base import TemplateBase
from scimitar.utils.namespaces import normalize_namespace

Encoding = Literal["html", "raw"]


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Settings shared by every render of one Engine.

    Attributes:
        template_base_type: Base class of generated templates (TemplateBase
            or a subclass); ``@inherits`` overrides it per template
        namespaces: Namespaces imported into every generated module
        encoding: "html" escapes written values, "raw" writes them as-is
        max_layout_depth: Longest allowed layout chain, child included
        max_include_depth: Deepest allowed include nesting
        imports_file_name: Name of the hierarchical imports file
        debug_directory: When set, generated source and bytecode are written
            here and tracebacks point at the written files
        optimize: ``compile()`` optimization level
        file_encoding: Encoding used to decode template files
    """

    template_base_type: type[TemplateBase] = TemplateBase
    namespaces: frozenset[str] = frozenset()
    encoding: Encoding = "html"
    max_layout_depth: int = 16
    max_include_depth: int = 50
    imports_file_name: str = "_imports.html"
    debug_directory: str | Path | None = None
    optimize: int = -1
    file_encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if not (isinstance(self.template_base_type, type) and issubclass(self.template_base_type, TemplateBase)):
            raise ValueError(
                f"template_base_type must be a subclass of TemplateBase, got {self.template_base_type!r}"
            )
        if isinstance(self.namespaces, str):
            raise ValueError("namespaces must be a collection of strings, not a single string")
        normalized: set[str] = set()
        for namespace in self.namespaces:
            canonical = normalize_namespace(namespace)
            if canonical is None:
                raise ValueError(f"Invalid namespace {namespace!r}")
            normalized.add(canonical)
        object.__setattr__(self, "namespaces", frozenset(normalized))
        if self.encoding not in ("html", "raw"):
            raise ValueError(f"encoding must be 'html' or 'raw', got {self.encoding!r}")
        if self.max_layout_depth < 1:
            raise ValueError("max_layout_depth must be at least 1")
        if self.max_include_depth < 0:
            raise ValueError("max_include_depth must not be negative")
        if not self.imports_file_name or "/" in self.imports_file_name:
            raise ValueError(f"Invalid imports_file_name {self.imports_file_name!r}")
        if self.optimize not in (-1, 0, 1, 2):
            raise ValueError(f"optimize must be -1, 0, 1 or 2, got {self.optimize!r}")

    def with_options(self, **options: Any) -> EngineConfig:
        """Copy of this config with ``options`` replaced."""
        return replace(self, **options)


DEFAULT_CONFIG = EngineConfig()
