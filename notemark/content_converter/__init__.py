"""Content conversion from note block trees to Markdown.

Key classes:
    DocumentAssembler: Converts a whole block sequence plus metadata
    BlockRenderer: Renders one block given the list context
    InlineRenderer: Renders inline spans and their formatting marks
    FrontmatterEncoder: Encodes and decodes the YAML front matter header
"""

from .block_renderer import BlockRenderer, ListContext, RenderedBlock
from .document_assembler import DocumentAssembler
from .errors import ConversionError, FrontmatterError
from .frontmatter_encoder import FrontmatterEncoder
from .inline_renderer import InlineRenderer
from .models import ConversionResult, ConversionWarning, WarningKind

__all__ = [
    "DocumentAssembler",
    "BlockRenderer",
    "ListContext",
    "RenderedBlock",
    "InlineRenderer",
    "FrontmatterEncoder",
    "ConversionResult",
    "ConversionWarning",
    "WarningKind",
    "ConversionError",
    "FrontmatterError",
]
