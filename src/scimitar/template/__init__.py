"""scimitar runtime: the base class of generated templates and its collaborators.

Generated modules reference this package by default, so host subclasses of
``TemplateBase`` and models can rely on it being importable.
"""

from scimitar.template.base import TemplateBase
from scimitar.template.execute_context import ContextState, ExecuteContext
from scimitar.template.model import DynamicModel, ViewBag, wrap_model
from scimitar.template.writer import TemplateWriter
from scimitar.utils.html import RawString, html_escape

__all__ = [
    "ContextState",
    "DynamicModel",
    "ExecuteContext",
    "RawString",
    "TemplateBase",
    "TemplateWriter",
    "ViewBag",
    "html_escape",
    "wrap_model",
]
