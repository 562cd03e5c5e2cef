"""Immutable template tree produced by the parser and consumed by the generator."""

from scimitar.nodes.base import Node
from scimitar.nodes.control_flow import ElifClause, For, If, While, With
from scimitar.nodes.directives import (
    FunctionsBlock,
    InheritsDirective,
    LayoutDirective,
    ModelDirective,
    Section,
    UsingDirective,
)
from scimitar.nodes.markup import CodeBlock, CodeLine, Expression, Text
from scimitar.nodes.structure import Template

__all__ = [
    "CodeBlock",
    "CodeLine",
    "ElifClause",
    "Expression",
    "For",
    "FunctionsBlock",
    "If",
    "InheritsDirective",
    "LayoutDirective",
    "ModelDirective",
    "Node",
    "Section",
    "Template",
    "Text",
    "UsingDirective",
    "While",
    "With",
]
