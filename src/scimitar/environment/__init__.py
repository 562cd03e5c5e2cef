"""Engine, configuration, loaders and errors.

``exceptions`` is imported first: every other scimitar module imports its
error types from there.
"""

from scimitar.environment.exceptions import (
    BodyWriterStackError,
    CompilationError,
    ErrorCode,
    ExecutionError,
    IncludeDepthError,
    LayoutCycleError,
    LayoutDepthError,
    ParseError,
    SectionDefinitionError,
    SectionNotDefinedError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    build_source_snippet,
)
from scimitar.environment.config import DEFAULT_CONFIG, EngineConfig
from scimitar.environment.loaders import (
    BaseLoader,
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    FunctionLoader,
    Loader,
    SourceItem,
)
from scimitar.environment.core import Engine, Template

__all__ = [
    "DEFAULT_CONFIG",
    "BaseLoader",
    "BodyWriterStackError",
    "ChoiceLoader",
    "CompilationError",
    "DictLoader",
    "Engine",
    "EngineConfig",
    "ErrorCode",
    "ExecutionError",
    "FileSystemLoader",
    "FunctionLoader",
    "IncludeDepthError",
    "LayoutCycleError",
    "LayoutDepthError",
    "Loader",
    "ParseError",
    "SectionDefinitionError",
    "SectionNotDefinedError",
    "SourceItem",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "build_source_snippet",
]
