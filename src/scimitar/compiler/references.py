"""Module references visible to generated code.

The compiler service asks a ``ReferenceResolver`` which modules to import
before the generated module body runs. Resolvers receive the defaults
(``scimitar.template``, the modules of the base and model types, the
namespace modules) and may add to or filter them.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from types import ModuleType
from typing import TYPE_CHECKING, Protocol

from scimitar.utils.namespaces import namespace_module

if TYPE_CHECKING:
    from scimitar._types import TypeContext

RUNTIME_MODULE = "scimitar.template"


@dataclass(frozen=True, slots=True)
class CompilerReference:
    """An importable module that generated code may use."""

    module_name: str

    @classmethod
    def for_type(cls, tp: type) -> CompilerReference:
        return cls(tp.__module__)

    def load(self) -> ModuleType:
        """Import the module.

        Raises:
            ImportError: If the module cannot be imported
        """
        return importlib.import_module(self.module_name)


class ReferenceResolver(Protocol):
    """Decides the references for one compilation."""

    def resolve(
        self,
        context: TypeContext,
        default_references: Sequence[CompilerReference],
    ) -> tuple[CompilerReference, ...]: ...


def _dedupe(references: Iterable[CompilerReference]) -> tuple[CompilerReference, ...]:
    return tuple(dict.fromkeys(references))


def default_references(context: TypeContext) -> tuple[CompilerReference, ...]:
    """References every compilation starts from.

    Example:
        >>> from scimitar._types import TypeContext
        >>> from scimitar.template import TemplateBase
        >>> ctx = TypeContext("_T", TemplateBase, namespaces=frozenset({"os.path as osp"}))
        >>> [r.module_name for r in default_references(ctx)]
        ['scimitar.template', 'scimitar.template.base', 'os.path']
    """
    refs = [CompilerReference(RUNTIME_MODULE), CompilerReference.for_type(context.template_base_type)]
    model_type = context.model_type
    if model_type is not None and model_type.__module__ != "builtins":
        refs.append(CompilerReference.for_type(model_type))
    refs.extend(CompilerReference(namespace_module(ns)) for ns in sorted(context.namespaces))
    return _dedupe(refs)


class UseCurrentModulesReferenceResolver:
    """Default resolver: the defaults plus ``TypeContext.references``, in order."""

    def resolve(
        self,
        context: TypeContext,
        default_references: Sequence[CompilerReference],
    ) -> tuple[CompilerReference, ...]:
        return _dedupe((*default_references, *context.references))
