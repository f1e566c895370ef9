"""Typed exception hierarchy for block tree errors.

Structural problems with the block sequence (MalformedDocumentError) abort
the conversion job. Problems confined to a single block
(InvalidBlockContentError, UnsupportedBlockError) never do: the assembler
skips the block and records a warning.
"""

from typing import Optional

from notemark.errors import PipelineError


class BlockError(PipelineError):
    """Base exception for all block tree errors."""
    pass


class MalformedDocumentError(BlockError):
    """Raised when the block sequence is not a well-formed list of blocks."""

    def __init__(self, reason: str, path: Optional[str] = None):
        if path:
            message = f"Malformed document at {path}: {reason}"
        else:
            message = f"Malformed document: {reason}"
        super().__init__(message)
        self.reason = reason
        self.path = path


class InvalidBlockContentError(BlockError):
    """Raised when one block's attributes or inline content cannot be read."""

    def __init__(self, block_type: str, reason: str):
        super().__init__(f"Invalid content in '{block_type}' block: {reason}")
        self.block_type = block_type
        self.reason = reason


class UnsupportedBlockError(BlockError):
    """Raised when a block has a type no renderer handles."""

    def __init__(self, block_type: str):
        super().__init__(f"Unsupported block type '{block_type}'")
        self.block_type = block_type
