"""Namespace strings shared by ``@using``, ``EngineConfig.namespaces`` and references.

A namespace is one of::

    module.path
    module.path as alias
    module.path import name, other as alias
"""

from __future__ import annotations

import re

_DOTTED = r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*"
_NAME = r"[A-Za-z_]\w*"
_IMPORTED = rf"{_NAME}(?:\s+as\s+{_NAME})?"

NAMESPACE_RE = re.compile(
    rf"^(?P<module>{_DOTTED})"
    rf"(?:\s+as\s+(?P<alias>{_NAME})"
    rf"|\s+import\s+(?P<names>{_IMPORTED}(?:\s*,\s*{_IMPORTED})*))?$"
)


def normalize_namespace(namespace: str) -> str | None:
    """Canonical spelling of a namespace, or None if it is malformed.

    Example:
        >>> normalize_namespace("  os.path   as  osp ")
        'os.path as osp'
        >>> normalize_namespace("math import pi,tau")
        'math import pi, tau'
    """
    m = NAMESPACE_RE.match(namespace.strip())
    if m is None:
        return None
    module = m.group("module")
    if m.group("alias"):
        return f"{module} as {m.group('alias')}"
    if m.group("names"):
        names = [" ".join(part.split()) for part in m.group("names").split(",")]
        return f"{module} import {', '.join(names)}"
    return module


def namespace_module(namespace: str) -> str:
    """The importable module a namespace refers to."""
    return namespace.strip().split()[0]


def import_statement(namespace: str) -> str:
    """Python import statement for a normalized namespace."""
    module, _, rest = namespace.partition(" import ")
    if rest:
        return f"from {module} import {rest}"
    return f"import {namespace}"
