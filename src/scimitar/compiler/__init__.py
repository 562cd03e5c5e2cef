"""Compiler: generated Python source → loaded template class.

Components:
    - CompilerService: builds, loads and validates one GeneratedUnit
    - PythonToolchain: ast.parse + compile + marshal, with diagnostics
    - ReferenceResolver: which modules generated code may import
"""

from scimitar.compiler.references import (
    CompilerReference,
    ReferenceResolver,
    UseCurrentModulesReferenceResolver,
    default_references,
)
from scimitar.compiler.service import CompilerService
from scimitar.compiler.toolchain import (
    CompileOptions,
    PythonToolchain,
    Toolchain,
    ToolchainOutput,
)

__all__ = [
    "CompileOptions",
    "CompilerReference",
    "CompilerService",
    "PythonToolchain",
    "ReferenceResolver",
    "Toolchain",
    "ToolchainOutput",
    "UseCurrentModulesReferenceResolver",
    "default_references",
]
