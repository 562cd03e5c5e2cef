"""Code generator: template nodes → Python source with a source map."""

from scimitar.generator.core import CodeGenerator, generate
from scimitar.generator.writer import SourceWriter

__all__ = ["CodeGenerator", "SourceWriter", "generate"]
