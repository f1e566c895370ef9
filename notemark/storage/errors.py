"""Typed exceptions for the durable output store."""

from typing import Optional

from notemark.errors import PipelineError


class StorageError(PipelineError):
    """Raised when a store operation (read, write, ...) fails."""

    def __init__(self, key: str, operation: str, reason: Optional[str] = None):
        message = f"Storage operation '{operation}' failed for {key}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.key = key
        self.operation = operation
        self.reason = reason


class InvalidKeyError(PipelineError):
    """Raised when a value cannot be used as a component of an object key."""

    def __init__(self, component: str, reason: str):
        super().__init__(f"Invalid key component {component!r}: {reason}")
        self.component = component
        self.reason = reason
