"""Document assembly.

Walks a note's block sequence in order, renders each block, and joins the
results into one Markdown document. Block-level problems never abort the
document: the offending block is skipped and recorded as a warning.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from notemark.blocks.errors import InvalidBlockContentError, UnsupportedBlockError
from notemark.blocks.models import ContentBlock, LIST_BLOCK_TYPES, resolve_block_type
from notemark.blocks.parser import BlockParser
from .block_renderer import BlockRenderer, ListContext, RenderedBlock
from .frontmatter_encoder import FrontmatterEncoder
from .models import ConversionResult, ConversionWarning, WarningKind

logger = logging.getLogger(__name__)


class DocumentAssembler:
    """Assembles block sequences into Markdown documents.

    Spacing rules:
    - Consecutive list items of the same kind are written as a tight list
    - Every other pair of adjacent non-empty blocks is separated by a blank line
    - A non-empty body always ends with a blank line

    Example:
        >>> assembler = DocumentAssembler()
        >>> assembler.assemble([
        ...     {"type": "paragraph", "content": [{"type": "text", "text": "Hello"}]}
        ... ]).markdown
        'Hello\\n\\n'
    """

    def __init__(
        self,
        parser: Optional[BlockParser] = None,
        block_renderer: Optional[BlockRenderer] = None,
        frontmatter_encoder=FrontmatterEncoder,
    ):
        self._parser = parser or BlockParser()
        self._renderer = block_renderer or BlockRenderer()
        self._frontmatter = frontmatter_encoder

    def assemble(
        self,
        blocks: Sequence[Mapping[str, Any]],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ConversionResult:
        """Convert a block sequence (and optional metadata) to Markdown.

        Args:
            blocks: Raw block sequence of a note
            metadata: Metadata record for the front matter. None means no
                front matter; an empty record still emits an empty header.

        Returns:
            ConversionResult with the Markdown and any skipped-block warnings

        Raises:
            MalformedDocumentError: If the block sequence is structurally invalid
            FrontmatterError: If the metadata record cannot be encoded
        """
        self._parser.validate_structure(blocks)

        warnings: List[ConversionWarning] = []
        lines = self._assemble_lines(blocks, "blocks", warnings)
        body = "\n".join(lines) + "\n\n" if lines else ""

        if metadata is None:
            markdown = body
        else:
            front_matter = self._frontmatter.encode(metadata)
            markdown = f"{front_matter}\n{body}" if body else front_matter

        logger.debug(
            f"Assembled {len(blocks)} top-level block(s), {len(warnings)} skipped"
        )
        return ConversionResult(
            markdown=markdown,
            metadata=dict(metadata) if metadata else {},
            warnings=warnings,
        )

    def _assemble_lines(
        self,
        raw_blocks: Sequence[Mapping[str, Any]],
        path: str,
        warnings: List[ConversionWarning],
    ) -> List[str]:
        """Render one sibling sequence into lines, threading list state."""
        lines: List[str] = []
        context = ListContext()
        previous_type = None

        for index, raw_block in enumerate(raw_blocks):
            block_path = f"{path}[{index}]"
            rendered = self._render_block(raw_block, context, block_path, warnings)
            if rendered is None:
                # A skipped block still interrupts a list of another kind
                if resolve_block_type(raw_block["type"]) != context.kind:
                    context = ListContext()
                continue

            block, rendered_block, context = rendered
            block_lines = list(rendered_block.lines)

            if block.children:
                indent = " " * rendered_block.child_indent
                child_lines = self._assemble_lines(
                    block.children, f"{block_path}.children", warnings
                )
                block_lines.extend(f"{indent}{line}" if line else "" for line in child_lines)

            if block_lines:
                tight = (
                    rendered_block.block_type in LIST_BLOCK_TYPES
                    and rendered_block.block_type == previous_type
                )
                if lines and not tight:
                    lines.append("")
                lines.extend(block_lines)

            previous_type = rendered_block.block_type

        return lines

    def _render_block(
        self,
        raw_block: Mapping[str, Any],
        context: ListContext,
        path: str,
        warnings: List[ConversionWarning],
    ) -> Optional[Tuple[ContentBlock, RenderedBlock, ListContext]]:
        """Parse and render one block, or record why it was skipped."""
        block_type = raw_block["type"]
        try:
            block = self._parser.parse_block(raw_block)
            rendered_block, next_context = self._renderer.render(block, context)
            return block, rendered_block, next_context
        except UnsupportedBlockError as e:
            kind = WarningKind.UNSUPPORTED_BLOCK
            message = str(e)
        except InvalidBlockContentError as e:
            kind = WarningKind.INVALID_CONTENT
            message = e.reason
        except Exception as e:
            kind = WarningKind.RENDER_FAILED
            message = f"{type(e).__name__}: {e}"

        logger.warning(f"Skipping block at {path} ({block_type}): {message}")
        warnings.append(
            ConversionWarning(kind=kind, path=path, block_type=block_type, message=message)
        )
        return None
