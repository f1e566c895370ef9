"""Typed exceptions for conversion jobs.

InvalidPayloadError is permanent and never retried. TransientError covers
I/O failures that may succeed on a later delivery.
"""

from typing import Optional

from notemark.errors import PipelineError


class JobError(PipelineError):
    """Base exception for all job errors."""
    pass


class InvalidPayloadError(JobError):
    """Raised when a job payload is structurally malformed."""

    def __init__(self, reason: str, field: Optional[str] = None):
        if field:
            message = f"Invalid job payload field '{field}': {reason}"
        else:
            message = f"Invalid job payload: {reason}"
        super().__init__(message)
        self.reason = reason
        self.field = field


class TransientError(JobError):
    """Raised when a job fails for a reason that may clear up on retry."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
