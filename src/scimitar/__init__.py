"""scimitar: Razor-style templates compiled to Python classes.

Templates mix text with ``@`` transitions into Python. Each template is
compiled once per model type into a class, cached, and instantiated per
render.

Quickstart:
    >>> from scimitar import Engine, DictLoader
    >>> engine = Engine(DictLoader({"hello.html": "Hello @Model.Name!"}))
    >>> engine.run("hello.html", {"Name": "World"})
    'Hello World!'

Layouts and sections:
    >>> engine = Engine(DictLoader({
    ...     "_layout.html": "<body>@render_body()<footer>@render_section('Foot')</footer></body>",
    ...     "page.html": "@layout '_layout.html'\\nHi @section Foot {bye}",
    ... }))
    >>> engine.run("page.html")
    '<body>Hi <footer>bye</footer></body>'

Architecture:
Template Source → Parser → nodes → Code Generator → Python source
→ Compiler Service → CompiledTemplate → Template Cache → instance.execute()

Pipeline stages:
1. **Parser**: Builds an immutable node tree; embedded Python is located,
   not parsed
2. **Code Generator**: Emits a Python module with one class, plus a source
   map from generated lines to template positions
3. **Compiler Service**: ``ast.parse`` + ``compile`` + ``marshal``, loads the
   module from memory, reports diagnostics at template positions
4. **Template Cache**: One compilation per (key, model type), even under
   concurrent first use
5. **Runner**: Executes instances, renders layouts through the execute
   context's section frames and body writers

Thread-Safety:
All public APIs are thread-safe:
- Compiled template classes are shared read-only
- Every render gets its own template instance and execute context
- The cache is the only shared mutable structure and never holds a lock
  while compiling

Free-Threading (PEP 703):
Declares GIL-independence via `_Py_mod_gil = 0` attribute.

"""

from scimitar.environment import (
    DEFAULT_CONFIG,
    BaseLoader,
    BodyWriterStackError,
    ChoiceLoader,
    CompilationError,
    DictLoader,
    Engine,
    EngineConfig,
    ErrorCode,
    ExecutionError,
    FileSystemLoader,
    FunctionLoader,
    IncludeDepthError,
    LayoutCycleError,
    LayoutDepthError,
    Loader,
    ParseError,
    SectionDefinitionError,
    SectionNotDefinedError,
    SourceItem,
    SourceSnippet,
    Template,
    TemplateError,
    TemplateNotFoundError,
    build_source_snippet,
)
from scimitar._types import (
    CompilationResult,
    CompiledTemplate,
    CompileFailure,
    CompileOk,
    Diagnostic,
    ParseFailure,
    RenderChain,
    Severity,
    SourcePosition,
    TemplateSource,
    TypeContext,
)
from scimitar.cache import CacheInfo, TemplateCache
from scimitar.compiler import (
    CompilerReference,
    CompilerService,
    PythonToolchain,
    ReferenceResolver,
    UseCurrentModulesReferenceResolver,
)
from scimitar.generator import generate
from scimitar.runner import TemplateRunner
from scimitar.template import (
    DynamicModel,
    ExecuteContext,
    RawString,
    TemplateBase,
    TemplateWriter,
    ViewBag,
    html_escape,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "BaseLoader",
    "BodyWriterStackError",
    "CacheInfo",
    "ChoiceLoader",
    "CompilationError",
    "CompilationResult",
    "CompileFailure",
    "CompileOk",
    "CompiledTemplate",
    "CompilerReference",
    "CompilerService",
    "Diagnostic",
    "DictLoader",
    "DynamicModel",
    "Engine",
    "EngineConfig",
    "ErrorCode",
    "ExecuteContext",
    "ExecutionError",
    "FileSystemLoader",
    "FunctionLoader",
    "IncludeDepthError",
    "LayoutCycleError",
    "LayoutDepthError",
    "Loader",
    "ParseError",
    "ParseFailure",
    "PythonToolchain",
    "RawString",
    "ReferenceResolver",
    "RenderChain",
    "SectionDefinitionError",
    "SectionNotDefinedError",
    "Severity",
    "SourceItem",
    "SourcePosition",
    "SourceSnippet",
    "Template",
    "TemplateBase",
    "TemplateCache",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRunner",
    "TemplateSource",
    "TemplateWriter",
    "TypeContext",
    "UseCurrentModulesReferenceResolver",
    "ViewBag",
    "__version__",
    "build_source_snippet",
    "generate",
    "html_escape",
]


def __getattr__(name: str) -> object:
    """Module-level getattr for the free-threading declaration."""
    if name == "_Py_mod_gil":
        # 0 = Py_MOD_GIL_NOT_USED
        return 0
    raise AttributeError(f"module 'scimitar' has no attribute {name!r}")
