"""Durable output targets for converted notes.

Key classes:
    OutputStore: Protocol for key-addressed text stores
    IndexingSink: Protocol for downstream search indexing
    InMemoryStore: Dict-backed store for tests and local runs
    FilesystemStore: Atomic store below a local directory
"""

from .base import IndexingSink, OutputStore, StoredObject
from .errors import InvalidKeyError, StorageError
from .filesystem_store import FilesystemStore
from .keys import dead_letter_key, output_key, validate_component
from .memory_store import InMemoryStore

__all__ = [
    "OutputStore",
    "IndexingSink",
    "StoredObject",
    "InMemoryStore",
    "FilesystemStore",
    "output_key",
    "dead_letter_key",
    "validate_component",
    "StorageError",
    "InvalidKeyError",
]
