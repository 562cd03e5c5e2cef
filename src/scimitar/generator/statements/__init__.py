"""Statement generation for the scimitar code generator.

The statements package is organized into logical modules:
- basic: Literal text, expressions, code blocks
- control_flow: if/elif/else, for/empty, while, with
- template_structure: Sections

Uses inline TYPE_CHECKING declarations for host attributes.

"""

from __future__ import annotations

from scimitar.generator.statements.basic import BasicStatementMixin
from scimitar.generator.statements.control_flow import ControlFlowMixin
from scimitar.generator.statements.template_structure import TemplateStructureMixin


class StatementGenerationMixin(
    BasicStatementMixin,
    ControlFlowMixin,
    TemplateStructureMixin,
):
    """Combined mixin for generating all statement types."""
