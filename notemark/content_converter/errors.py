"""Typed exceptions for Markdown conversion."""

from typing import Optional

from notemark.errors import PipelineError


class ConversionError(PipelineError):
    """Raised when content conversion to Markdown fails."""

    def __init__(self, message: str):
        super().__init__(message)


class FrontmatterError(ConversionError):
    """Raised when front matter cannot be encoded or decoded."""

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            full_message = f"Front matter error in field '{field}': {message}"
        else:
            full_message = f"Front matter error: {message}"
        super().__init__(full_message)
        self.field = field
        self.original_message = message
