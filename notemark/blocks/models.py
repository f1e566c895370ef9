"""Data models for note content blocks.

A note's rich text is an ordered sequence of typed content blocks. Each
block carries type-specific attributes, a run of inline spans, and
optionally nested child blocks. Models are frozen: the pipeline never
mutates a document once it has been parsed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple


class BlockType(Enum):
    """Types of content blocks.

    UNKNOWN is the fallback variant for block kinds no renderer handles.
    """

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET_LIST_ITEM = "bulletListItem"
    NUMBERED_LIST_ITEM = "numberedListItem"
    CHECK_LIST_ITEM = "checkListItem"
    CODE_BLOCK = "codeBlock"
    QUOTE = "quote"
    IMAGE = "image"
    TABLE = "table"

    UNKNOWN = "unknown"


# Alternate spellings of block types found in stored notes
BLOCK_TYPE_ALIASES = {
    "blockquote": BlockType.QUOTE,
}

# Block types rendered as tight list items
LIST_BLOCK_TYPES = {
    BlockType.BULLET_LIST_ITEM,
    BlockType.NUMBERED_LIST_ITEM,
    BlockType.CHECK_LIST_ITEM,
}

# Inline formatting marks understood by the inline renderer
KNOWN_MARKS = frozenset({
    "bold",
    "italic",
    "strikethrough",
    "code",
    "underline",
})

MARK_ALIASES = {
    "strike": "strikethrough",
}


def resolve_block_type(type_name: str) -> BlockType:
    """Map a raw block type name to its BlockType variant.

    Args:
        type_name: The ``type`` field of a raw block

    Returns:
        Matching BlockType, or BlockType.UNKNOWN if no variant matches
    """
    if type_name in BLOCK_TYPE_ALIASES:
        return BLOCK_TYPE_ALIASES[type_name]
    try:
        return BlockType(type_name)
    except ValueError:
        return BlockType.UNKNOWN


@dataclass(frozen=True)
class InlineSpan:
    """A run of inline content carrying zero or more formatting marks.

    Plain text spans have ``kind == "text"``. Links keep their target in
    ``href`` and their label in ``children``. Other inline kinds keep
    whatever text or children they had so they can still be flattened.

    Attributes:
        kind: Inline node type ("text", "link", ...)
        text: Text content (empty string if absent)
        marks: Names of the active formatting marks
        href: Link target (links only)
        children: Nested inline spans (links and container nodes)
    """

    kind: str = "text"
    text: str = ""
    marks: FrozenSet[str] = frozenset()
    href: Optional[str] = None
    children: Tuple["InlineSpan", ...] = ()

    @property
    def is_text(self) -> bool:
        return self.kind == "text"


@dataclass(frozen=True)
class ContentBlock:
    """One structural unit of a note.

    Attributes:
        type: Raw block type name as it appeared in the note
        attrs: Type-specific attributes (heading level, checked, ...)
        content: Inline spans of the block
        rows: Table rows as lists of cells, each cell a span tuple (tables only)
        children: Raw child blocks, parsed one at a time by the assembler so
            that a bad child only costs that child
    """

    type: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    content: Tuple[InlineSpan, ...] = ()
    rows: Tuple[Tuple[Tuple[InlineSpan, ...], ...], ...] = ()
    children: Tuple[Mapping[str, Any], ...] = ()

    @property
    def block_type(self) -> BlockType:
        """Get the BlockType variant for this block."""
        return resolve_block_type(self.type)
