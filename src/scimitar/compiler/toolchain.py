"""Python toolchain adapter.

Turns generated source text into a marshalled code object plus diagnostics.
The binary never touches the filesystem here; the compiler service loads it
with ``marshal.loads`` from memory.
"""

from __future__ import annotations

import ast
import marshal
import warnings
from dataclasses import dataclass
from typing import Protocol

from scimitar._types import Diagnostic, Severity, SourcePosition


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Options passed to ``compile()``."""

    optimize: int = -1


DEFAULT_OPTIONS = CompileOptions()


@dataclass(frozen=True, slots=True)
class ToolchainOutput:
    """Result of one build.

    Attributes:
        binary: Marshalled code object, or None when the build failed
        diagnostics: Everything the toolchain reported, in order
    """

    binary: bytes | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def success(self) -> bool:
        return self.binary is not None and not any(d.is_error for d in self.diagnostics)


class Toolchain(Protocol):
    def build(self, source_text: str, filename: str, options: CompileOptions) -> ToolchainOutput: ...


class PythonToolchain:
    """Build with the running interpreter's ``ast.parse`` and ``compile``.

    ``SyntaxWarning`` (and any other warning raised while compiling) becomes
    a warning diagnostic; ``SyntaxError`` becomes an error diagnostic.
    """

    def build(
        self,
        source_text: str,
        filename: str,
        options: CompileOptions = DEFAULT_OPTIONS,
    ) -> ToolchainOutput:
        diagnostics: list[Diagnostic] = []
        binary: bytes | None = None
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                tree = ast.parse(source_text, filename=filename)
                code = compile(tree, filename, "exec", dont_inherit=True, optimize=options.optimize)
            except SyntaxError as exc:
                diagnostics.append(
                    Diagnostic(
                        Severity.ERROR,
                        f"{type(exc).__name__}: {exc.msg}",
                        SourcePosition(exc.lineno or 1, max(0, (exc.offset or 1) - 1)),
                    )
                )
            except ValueError as exc:
                diagnostics.append(Diagnostic(Severity.ERROR, str(exc)))
            else:
                binary = marshal.dumps(code)

        warning_diagnostics = [
            Diagnostic(
                Severity.WARNING,
                f"{w.category.__name__}: {w.message}",
                SourcePosition(w.lineno) if w.lineno else None,
            )
            for w in caught
        ]
        return ToolchainOutput(binary, (*warning_diagnostics, *diagnostics))
