"""Exceptions for the scimitar template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # No source provider knows the key
├── ParseError                # Malformed template syntax or directive misuse
├── CompilationError          # Generated code rejected by the Python toolchain
├── LayoutCycleError          # Layout chain revisits a template
│   └── LayoutDepthError      # Layout chain longer than the configured maximum
└── ExecutionError            # Fault while running a compiled template
    └── IncludeDepthError     # Includes nested deeper than the configured maximum

Runtime protocol faults raised by the execute context are plain Python
exceptions (``SectionDefinitionError``, ``SectionNotDefinedError``,
``BodyWriterStackError``); the runner wraps them in ``ExecutionError``.

Positions always refer to the original template text, never the generated
Python source, when a source map can translate them:

    ```
    S-PAR-002: Section 'Foot' is never closed
      --> page.html:3:0
       |
    >  3 | @section Foot {
       |
    ```

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from scimitar._types import Diagnostic, SourcePosition
from scimitar.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: S-{CATEGORY}-{NUMBER}
    Categories: PAR (parser), CMP (compiler), RUN (runtime), TPL (template loading)
    """

    # Parser errors (S-PAR-xxx)
    UNEXPECTED_CHARACTER = "S-PAR-001"
    UNCLOSED_BLOCK = "S-PAR-002"
    INVALID_DIRECTIVE = "S-PAR-003"
    DIRECTIVE_MISUSE = "S-PAR-004"

    # Compiler errors (S-CMP-xxx)
    COMPILATION_FAILED = "S-CMP-001"

    # Runtime errors (S-RUN-xxx)
    EXECUTION_FAILED = "S-RUN-001"
    LAYOUT_CYCLE = "S-RUN-002"
    LAYOUT_DEPTH = "S-RUN-003"
    INCLUDE_DEPTH = "S-RUN-004"

    # Template loading errors (S-TPL-xxx)
    TEMPLATE_NOT_FOUND = "S-TPL-001"

    @property
    def category(self) -> str:
        """Error category (e.g. 'runtime', 'parser', 'compiler', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "PAR": "parser",
            "CMP": "compiler",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """A few numbered template lines centred on the failing one.

    ``column`` is zero-based; when set, ``format()`` draws a caret under it.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(terminal.format_source_line(lineno, content, is_error=lineno == self.error_line))
            if lineno == self.error_line and self.column is not None:
                caret = " " * self.column + "^"
                parts.append(f"{terminal.dim_text('     |')} {terminal.error_text(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Cut ``context_lines`` either side of the 1-based ``error_line``."""
    text_lines = source.splitlines()
    first = max(1, error_line - context_lines)
    last = min(len(text_lines), error_line + context_lines)
    lines = tuple((n, text_lines[n - 1]) for n in range(first, last + 1))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def _location(name: str | None, position: SourcePosition | None) -> str:
    where = name or "<template>"
    if position is not None:
        where += f":{position}"
    return where


class TemplateError(Exception):
    """Base exception for all scimitar template errors.

    Attributes:
        code: ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a short diagnostic without traceback noise."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{terminal.error_code(self.code.value)}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """No source provider could supply the requested template key."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class ParseError(TemplateError):
    """Malformed template syntax, reported at the original template position.

    Example:
            >>> engine.run_compile("@section Foot {", "page.html")
        ParseError: Section 'Foot' is never closed
          --> page.html:1:0
    """

    code: ErrorCode | None = ErrorCode.UNEXPECTED_CHARACTER

    def __init__(
        self,
        message: str,
        position: SourcePosition,
        *,
        template_key: str | None = None,
        source: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.position = position
        self.template_key = template_key
        self.source = source
        self.suggestion = suggestion
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    @property
    def lineno(self) -> int:
        return self.position.line

    @property
    def col_offset(self) -> int:
        return self.position.column

    def _format_message(self) -> str:
        msg = f"{self.message}\n  --> {terminal.location(_location(self.template_key, self.position))}"
        if self.source:
            snippet = build_source_snippet(
                self.source, self.position.line, context_lines=0, column=self.position.column
            )
            if snippet.lines:
                msg += "\n" + snippet.format()
        if self.suggestion:
            msg += f"\n  {terminal.hint('Suggestion:')} {self.suggestion}"
        return msg


class CompilationError(TemplateError):
    """The generated Python source failed to compile or load.

    Attributes:
        diagnostics: Every diagnostic of the failed attempt (warnings included)
        first_error_position: Template position of the first error, or the
            generated position when the source map cannot translate it
        generated_source: The generated Python text, for inspection
    """

    code: ErrorCode | None = ErrorCode.COMPILATION_FAILED

    def __init__(
        self,
        diagnostics: Sequence[Diagnostic],
        *,
        template_key: str | None = None,
        first_error_position: SourcePosition | None = None,
        generated_source: str | None = None,
        template_source: str | None = None,
    ):
        self.diagnostics = tuple(diagnostics)
        self.template_key = template_key
        self.first_error_position = first_error_position
        self.generated_source = generated_source
        self.template_source = template_source
        super().__init__(self._format_message())

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_error)

    def _format_message(self) -> str:
        errors = self.errors
        first = errors[0].message if errors else "unknown error"
        where = _location(self.template_key, self.first_error_position)
        parts = [f"Template failed to compile: {first}", f"  --> {terminal.location(where)}"]
        if self.template_source and self.first_error_position is not None:
            snippet = build_source_snippet(
                self.template_source,
                self.first_error_position.line,
                context_lines=0,
                column=self.first_error_position.column,
            )
            if snippet.lines:
                parts.append(snippet.format())
        if len(errors) > 1:
            parts.append(f"  ({len(errors) - 1} more error(s))")
        return "\n".join(parts)


class LayoutCycleError(TemplateError):
    """A template's layout chain leads back to a template already rendering.

    Example:
            >>> engine.run("a.html")
        LayoutCycleError: Layout cycle detected: a.html → b.html → a.html
    """

    code: ErrorCode | None = ErrorCode.LAYOUT_CYCLE

    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"Layout cycle detected: {' → '.join(self.chain)}"


class LayoutDepthError(LayoutCycleError):
    """The layout chain grew past ``max_layout_depth`` before a cycle was provable."""

    code: ErrorCode | None = ErrorCode.LAYOUT_DEPTH

    def __init__(self, chain: Sequence[str], max_depth: int):
        self.max_depth = max_depth
        super().__init__(chain)

    def _format_message(self) -> str:
        return (
            f"Maximum layout depth exceeded ({self.max_depth}): {' → '.join(self.chain)}\n"
            f"  {terminal.hint('Hint:')} Check for misconfigured layouts or raise max_layout_depth"
        )


class ExecutionError(TemplateError):
    """A fault while executing a compiled template.

    The shared compiled template and its cache entry are unaffected; only the
    render that raised fails.

    Attributes:
        cause: The original exception (also chained as ``__cause__``)
        template_key: Template whose generated code raised
        position: Template position of the faulting line, when known
    """

    code: ErrorCode | None = ErrorCode.EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        template_key: str | None = None,
        position: SourcePosition | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.message = message
        self.cause = cause
        self.template_key = template_key
        self.position = position
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    @property
    def lineno(self) -> int | None:
        return self.position.line if self.position else None

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_key or self.position:
            parts.append(f"  Location: {terminal.location(_location(self.template_key, self.position))}")
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        return "\n".join(parts)


class IncludeDepthError(ExecutionError):
    """Includes nested deeper than ``max_include_depth``."""

    code: ErrorCode | None = ErrorCode.INCLUDE_DEPTH

    def __init__(self, key: str, max_depth: int, including: str | None = None):
        self.max_depth = max_depth
        super().__init__(
            f"Maximum include depth exceeded ({max_depth}) when including '{key}'",
            template_key=including,
        )


# ---------------------------------------------------------------------------
# Execute-context protocol faults (wrapped by the runner)
# ---------------------------------------------------------------------------


class SectionDefinitionError(ValueError):
    """A section name is empty or already defined in the current frame."""


class SectionNotDefinedError(LookupError):
    """A required section was rendered but no template defined it."""


class BodyWriterStackError(RuntimeError):
    """The body writer stack was popped while empty."""
