"""Parser for note block trees.

Converts the JSON-like block tree delivered with a conversion job into
ContentBlock objects. Validation happens at two levels:

- Structure (validate_structure): the block sequence must be a list of
  objects that each carry a string ``type``, recursively through
  ``children``. Violations raise MalformedDocumentError and abort the job.
- Block content (parse_block): attributes and inline content of one block.
  Violations raise InvalidBlockContentError, and only that block is skipped.
"""

import logging
from typing import Any, FrozenSet, List, Mapping, Tuple

from .errors import InvalidBlockContentError, MalformedDocumentError
from .models import (
    BlockType,
    ContentBlock,
    InlineSpan,
    KNOWN_MARKS,
    MARK_ALIASES,
    resolve_block_type,
)

logger = logging.getLogger(__name__)

# Maximum nesting of child blocks before a tree is treated as corrupt
MAX_NESTING_DEPTH = 32


class BlockParser:
    """Parser for note block trees.

    Never mutates the raw tree it is given; attribute mappings are copied
    into the parsed blocks.
    """

    def validate_structure(self, raw_blocks: Any) -> None:
        """Validate the top-level shape of a block sequence.

        Args:
            raw_blocks: The ``blocks`` value of a conversion job

        Raises:
            MalformedDocumentError: If the sequence or any block in it is not
                block-shaped, or nesting exceeds MAX_NESTING_DEPTH
        """
        self._validate_sequence(raw_blocks, "blocks", depth=0)

    def parse_block(self, raw_block: Mapping[str, Any]) -> ContentBlock:
        """Parse a single block (without parsing its children).

        Args:
            raw_block: A block mapping that passed validate_structure

        Returns:
            Parsed ContentBlock; children are kept as raw mappings

        Raises:
            InvalidBlockContentError: If attributes or content are unreadable
        """
        block_type = raw_block["type"]
        attrs = self._parse_attrs(raw_block, block_type)

        content: Tuple[InlineSpan, ...] = ()
        rows: Tuple[Tuple[Tuple[InlineSpan, ...], ...], ...] = ()

        raw_content = raw_block.get("content")
        if resolve_block_type(block_type) == BlockType.TABLE:
            rows = self._parse_table_rows(raw_content, block_type)
        else:
            content = self._parse_spans(raw_content, block_type)

        children = tuple(raw_block.get("children") or ())

        return ContentBlock(
            type=block_type,
            attrs=attrs,
            content=content,
            rows=rows,
            children=children,
        )

    def _validate_sequence(self, raw_blocks: Any, path: str, depth: int) -> None:
        if depth > MAX_NESTING_DEPTH:
            raise MalformedDocumentError(
                f"blocks nested deeper than {MAX_NESTING_DEPTH} levels", path
            )

        if not isinstance(raw_blocks, (list, tuple)):
            raise MalformedDocumentError(
                f"expected a list of blocks, got {type(raw_blocks).__name__}", path
            )

        for index, raw_block in enumerate(raw_blocks):
            block_path = f"{path}[{index}]"
            if not isinstance(raw_block, Mapping):
                raise MalformedDocumentError(
                    f"expected a block object, got {type(raw_block).__name__}",
                    block_path,
                )

            block_type = raw_block.get("type")
            if not isinstance(block_type, str) or not block_type:
                raise MalformedDocumentError("block has no 'type'", block_path)

            children = raw_block.get("children")
            if children is not None:
                self._validate_sequence(children, f"{block_path}.children", depth + 1)

    def _parse_attrs(self, raw_block: Mapping[str, Any], block_type: str) -> dict:
        """Read block attributes from ``attrs`` (or the editor's ``props``)."""
        attrs = raw_block.get("attrs")
        if attrs is None:
            attrs = raw_block.get("props")
        if attrs is None:
            return {}
        if not isinstance(attrs, Mapping):
            raise InvalidBlockContentError(
                block_type, f"attrs must be an object, got {type(attrs).__name__}"
            )
        return dict(attrs)

    def _parse_spans(self, raw_content: Any, block_type: str) -> Tuple[InlineSpan, ...]:
        if raw_content is None:
            return ()
        if isinstance(raw_content, str):
            return (InlineSpan(text=raw_content),)
        if not isinstance(raw_content, (list, tuple)):
            raise InvalidBlockContentError(
                block_type,
                f"content must be a list of inline spans, got {type(raw_content).__name__}",
            )
        return tuple(self._parse_span(raw_span, block_type) for raw_span in raw_content)

    def _parse_span(self, raw_span: Any, block_type: str) -> InlineSpan:
        """Parse one inline entry.

        Args:
            raw_span: Inline entry (text span, link, or other inline node)
            block_type: Type of the containing block (for error messages)

        Returns:
            Parsed InlineSpan
        """
        if not isinstance(raw_span, Mapping):
            raise InvalidBlockContentError(
                block_type,
                f"inline content entry must be an object, got {type(raw_span).__name__}",
            )

        kind = raw_span.get("type", "text")
        if not isinstance(kind, str):
            raise InvalidBlockContentError(block_type, "inline 'type' must be a string")

        text = raw_span.get("text")
        if text is None:
            text = ""
        elif not isinstance(text, str):
            raise InvalidBlockContentError(
                block_type, f"inline 'text' must be a string, got {type(text).__name__}"
            )

        attrs = raw_span.get("attrs")
        if attrs is None:
            attrs = raw_span.get("styles")
        if attrs is None:
            attrs = {}
        if not isinstance(attrs, Mapping):
            raise InvalidBlockContentError(
                block_type, f"inline 'attrs' must be an object, got {type(attrs).__name__}"
            )

        href = raw_span.get("href", attrs.get("href"))
        if href is not None and not isinstance(href, str):
            raise InvalidBlockContentError(block_type, "link 'href' must be a string")

        children: Tuple[InlineSpan, ...] = ()
        if kind != "text":
            children = self._parse_spans(raw_span.get("content"), block_type)

        return InlineSpan(
            kind=kind,
            text=text,
            marks=self._parse_marks(attrs),
            href=href,
            children=children,
        )

    def _parse_marks(self, attrs: Mapping[str, Any]) -> FrozenSet[str]:
        """Collect the formatting marks switched on in a span's attrs.

        Marks are independent booleans; only a literal ``True`` turns one on.
        Keys that are not formatting marks (colours, href, ...) are ignored.
        """
        marks = set()
        for key, value in attrs.items():
            mark = MARK_ALIASES.get(key, key)
            if mark in KNOWN_MARKS and value is True:
                marks.add(mark)
        return frozenset(marks)

    def _parse_table_rows(
        self, raw_content: Any, block_type: str
    ) -> Tuple[Tuple[Tuple[InlineSpan, ...], ...], ...]:
        """Parse table content into rows of cells.

        Table content has the shape ``{"type": "tableContent", "rows":
        [{"cells": [cell, ...]}, ...]}`` where each cell is a span list or an
        object with a ``content`` span list.
        """
        if raw_content is None:
            return ()
        if not isinstance(raw_content, Mapping):
            raise InvalidBlockContentError(
                block_type,
                f"table content must be an object with rows, got {type(raw_content).__name__}",
            )

        raw_rows = raw_content.get("rows") or []
        if not isinstance(raw_rows, (list, tuple)):
            raise InvalidBlockContentError(block_type, "table 'rows' must be a list")

        rows: List[Tuple[Tuple[InlineSpan, ...], ...]] = []
        for raw_row in raw_rows:
            if not isinstance(raw_row, Mapping):
                raise InvalidBlockContentError(block_type, "table row must be an object")
            raw_cells = raw_row.get("cells") or []
            if not isinstance(raw_cells, (list, tuple)):
                raise InvalidBlockContentError(block_type, "table row 'cells' must be a list")
            rows.append(tuple(self._parse_cell(cell, block_type) for cell in raw_cells))

        logger.debug(f"Parsed table with {len(rows)} row(s)")
        return tuple(rows)

    def _parse_cell(self, raw_cell: Any, block_type: str) -> Tuple[InlineSpan, ...]:
        if isinstance(raw_cell, Mapping):
            return self._parse_spans(raw_cell.get("content"), block_type)
        return self._parse_spans(raw_cell, block_type)

