"""Conversion result data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class WarningKind(Enum):
    """Why a block was left out of the rendered document."""

    UNSUPPORTED_BLOCK = "unsupported_block"
    INVALID_CONTENT = "invalid_content"
    RENDER_FAILED = "render_failed"


@dataclass(frozen=True)
class ConversionWarning:
    """A block that was skipped during conversion.

    Attributes:
        kind: Category of the problem
        path: Location of the block in the tree (e.g. "blocks[3].children[0]")
        block_type: Raw type name of the skipped block
        message: Human-readable description
    """

    kind: WarningKind
    path: str
    block_type: str
    message: str

    def __str__(self) -> str:
        return f"{self.path} ({self.block_type}): {self.message}"


@dataclass
class ConversionResult:
    """Result of block tree to Markdown conversion.

    Contains the converted Markdown along with the metadata used for the
    front matter and warnings about blocks that were skipped.

    Attributes:
        markdown: Converted Markdown, including front matter if any
        metadata: Metadata record the front matter was built from
        warnings: Blocks skipped during conversion
    """
    markdown: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    warnings: List[ConversionWarning] = field(default_factory=list)

    @property
    def skipped_blocks(self) -> int:
        return len(self.warnings)
