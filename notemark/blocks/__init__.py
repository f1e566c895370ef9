"""Content block models and parsing.

Key classes:
    BlockParser: Validates block tree structure and parses single blocks
    ContentBlock: One typed block of a note
    InlineSpan: A formatted run of inline text
"""

from .errors import (
    BlockError,
    MalformedDocumentError,
    InvalidBlockContentError,
    UnsupportedBlockError,
)
from .models import (
    BlockType,
    ContentBlock,
    InlineSpan,
    LIST_BLOCK_TYPES,
    resolve_block_type,
)
from .parser import BlockParser, MAX_NESTING_DEPTH

__all__ = [
    "BlockParser",
    "MAX_NESTING_DEPTH",
    # Data models
    "BlockType",
    "ContentBlock",
    "InlineSpan",
    "LIST_BLOCK_TYPES",
    "resolve_block_type",
    # Errors
    "BlockError",
    "MalformedDocumentError",
    "InvalidBlockContentError",
    "UnsupportedBlockError",
]
