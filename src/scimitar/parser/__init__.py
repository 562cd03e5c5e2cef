"""Template parser: text → ``scimitar.nodes`` tree."""

from scimitar.parser.core import Parser, parse

__all__ = ["Parser", "parse"]
