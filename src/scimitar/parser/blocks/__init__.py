"""Block parsing mixins for the scimitar parser."""

from scimitar.parser.blocks.control_flow import ControlFlowParsingMixin
from scimitar.parser.blocks.directives import DirectiveParsingMixin

__all__ = ["ControlFlowParsingMixin", "DirectiveParsingMixin"]
