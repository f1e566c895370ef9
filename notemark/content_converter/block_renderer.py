"""Block rendering.

Maps one ContentBlock to lines of Markdown. Rendering is a pure function of
the block and a ListContext value: the context carries list numbering
between sibling blocks and is returned updated rather than stored.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from notemark.blocks.errors import InvalidBlockContentError, UnsupportedBlockError
from notemark.blocks.models import BlockType, ContentBlock, LIST_BLOCK_TYPES
from .inline_renderer import InlineRenderer

logger = logging.getLogger(__name__)

MIN_HEADING_LEVEL = 1
MAX_HEADING_LEVEL = 6

# Indentation for children of blocks without a list marker
DEFAULT_CHILD_INDENT = 2


@dataclass(frozen=True)
class ListContext:
    """List state threaded between sibling blocks.

    Attributes:
        kind: List block type of the previous sibling, None after a non-list block
        counter: Number of the previous numbered item (0 if none)
    """

    kind: Optional[BlockType] = None
    counter: int = 0

    def advance(self, block_type: BlockType) -> "ListContext":
        """Return the context after a block of the given type.

        A list item continues the run if the previous sibling was the same
        kind of item; anything else starts over.
        """
        if block_type not in LIST_BLOCK_TYPES:
            return ListContext()
        if self.kind == block_type:
            return ListContext(kind=block_type, counter=self.counter + 1)
        return ListContext(kind=block_type, counter=1)


@dataclass(frozen=True)
class RenderedBlock:
    """Markdown produced for one block.

    Attributes:
        block_type: Variant the block rendered as
        lines: Output lines, without trailing newlines (may be empty)
        child_indent: Indentation width for the block's nested children
    """

    block_type: BlockType
    lines: Tuple[str, ...] = ()
    child_indent: int = DEFAULT_CHILD_INDENT

    @property
    def is_empty(self) -> bool:
        return not self.lines


_Renderer = Callable[[ContentBlock, ListContext], Tuple[List[str], int]]


class BlockRenderer:
    """Renders single content blocks to Markdown lines.

    Dispatch is over the closed BlockType variant set. Every variant except
    BlockType.UNKNOWN has a renderer; blocks of any other type raise
    UnsupportedBlockError and are skipped by the caller.
    """

    def __init__(self, inline_renderer: Optional[InlineRenderer] = None):
        self._inline = inline_renderer or InlineRenderer()
        self._renderers: Dict[BlockType, _Renderer] = {
            BlockType.PARAGRAPH: self._render_paragraph,
            BlockType.HEADING: self._render_heading,
            BlockType.BULLET_LIST_ITEM: self._render_bullet_item,
            BlockType.NUMBERED_LIST_ITEM: self._render_numbered_item,
            BlockType.CHECK_LIST_ITEM: self._render_check_item,
            BlockType.CODE_BLOCK: self._render_code_block,
            BlockType.QUOTE: self._render_quote,
            BlockType.IMAGE: self._render_image,
            BlockType.TABLE: self._render_table,
        }

    def render(
        self, block: ContentBlock, context: ListContext
    ) -> Tuple[RenderedBlock, ListContext]:
        """Render one block.

        Args:
            block: Parsed content block
            context: List state left by the previous sibling

        Returns:
            Tuple of (rendered block, context for the next sibling)

        Raises:
            UnsupportedBlockError: If the block type has no renderer
            InvalidBlockContentError: If the block's attributes are unusable
        """
        block_type = block.block_type
        renderer = self._renderers.get(block_type)
        if renderer is None:
            raise UnsupportedBlockError(block.type)

        next_context = context.advance(block_type)
        lines, child_indent = renderer(block, next_context)

        logger.debug(f"Rendered {block.type} block as {len(lines)} line(s)")
        return (
            RenderedBlock(
                block_type=block_type,
                lines=tuple(lines),
                child_indent=child_indent,
            ),
            next_context,
        )

    def _render_paragraph(self, block: ContentBlock, context: ListContext):
        text = self._inline.render(block.content)
        if not text:
            return [], DEFAULT_CHILD_INDENT
        return text.split("\n"), DEFAULT_CHILD_INDENT

    def _render_heading(self, block: ContentBlock, context: ListContext):
        level = _heading_level(block.attrs)
        # Headings are single-line in Markdown
        text = self._inline.render(block.content).replace("\n", " ")
        return [f"{'#' * level} {text}"], DEFAULT_CHILD_INDENT

    def _render_bullet_item(self, block: ContentBlock, context: ListContext):
        return self._list_item_lines("- ", block), 2

    def _render_numbered_item(self, block: ContentBlock, context: ListContext):
        marker = f"{context.counter}. "
        return self._list_item_lines(marker, block), len(marker)

    def _render_check_item(self, block: ContentBlock, context: ListContext):
        checked = block.attrs.get("checked") is True
        marker = "- [x] " if checked else "- [ ] "
        return self._list_item_lines(marker, block), 2

    def _render_code_block(self, block: ContentBlock, context: ListContext):
        language = block.attrs.get("language") or ""
        if not isinstance(language, str):
            raise InvalidBlockContentError(block.type, "code block 'language' must be a string")

        code = self._inline.render_plain(block.content)
        fence = _code_fence(code)
        lines = [f"{fence}{language}"]
        if code:
            lines.extend(code.split("\n"))
        lines.append(fence)
        return lines, DEFAULT_CHILD_INDENT

    def _render_quote(self, block: ContentBlock, context: ListContext):
        text = self._inline.render(block.content)
        if not text:
            return [], DEFAULT_CHILD_INDENT
        lines = [f"> {line}" if line else ">" for line in text.split("\n")]
        return lines, DEFAULT_CHILD_INDENT

    def _render_image(self, block: ContentBlock, context: ListContext):
        src = _first_attr(block.attrs, ("src", "url"))
        alt = _first_attr(block.attrs, ("alt", "caption", "name"))
        return [f"![{alt}]({src})"], DEFAULT_CHILD_INDENT

    def _render_table(self, block: ContentBlock, context: ListContext):
        if not block.rows:
            return [], DEFAULT_CHILD_INDENT

        width = max(len(row) for row in block.rows)
        if width == 0:
            return [], DEFAULT_CHILD_INDENT

        rendered_rows = []
        for row in block.rows:
            cells = [_table_cell(self._inline.render(cell)) for cell in row]
            cells.extend([""] * (width - len(cells)))
            rendered_rows.append(cells)

        lines = [_table_row(rendered_rows[0]), _table_row(["---"] * width)]
        lines.extend(_table_row(cells) for cells in rendered_rows[1:])
        return lines, DEFAULT_CHILD_INDENT

    def _list_item_lines(self, marker: str, block: ContentBlock) -> List[str]:
        text_lines = self._inline.render(block.content).split("\n")
        continuation = " " * len(marker)
        lines = [f"{marker}{text_lines[0]}"]
        lines.extend(f"{continuation}{line}" if line else "" for line in text_lines[1:])
        return lines


def _heading_level(attrs: Mapping[str, Any]) -> int:
    """Read the heading level, defaulting to 1 and clamping to 1-6."""
    level = attrs.get("level", MIN_HEADING_LEVEL)
    if isinstance(level, bool):
        return MIN_HEADING_LEVEL
    if isinstance(level, str):
        try:
            level = int(level.strip())
        except ValueError:
            return MIN_HEADING_LEVEL
    elif isinstance(level, float):
        if math.isnan(level):
            return MIN_HEADING_LEVEL
        if math.isinf(level):
            return MAX_HEADING_LEVEL if level > 0 else MIN_HEADING_LEVEL
        level = int(level)
    elif not isinstance(level, int):
        return MIN_HEADING_LEVEL
    return max(MIN_HEADING_LEVEL, min(MAX_HEADING_LEVEL, level))


def _first_attr(attrs: Mapping[str, Any], names: Tuple[str, ...]) -> str:
    for name in names:
        value = attrs.get(name)
        if value is not None and value != "":
            return str(value)
    return ""


def _code_fence(code: str) -> str:
    longest = 0
    run = 0
    for char in code:
        run = run + 1 if char == "`" else 0
        longest = max(longest, run)
    return "`" * max(3, longest + 1)


def _table_cell(text: str) -> str:
    # Pipes and newlines would break the row, everything else passes through
    return text.replace("|", "\\|").replace("\n", "<br>")


def _table_row(cells: List[str]) -> str:
    return "| " + " | ".join(cells) + " |"
