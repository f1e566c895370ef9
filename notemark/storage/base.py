"""Interfaces of the collaborators the pipeline writes to.

The pipeline does not care where artifacts end up. Anything that can store
text under a key (an object store, a local directory, a dict in a test)
satisfies OutputStore; anything that accepts a finished artifact for
search indexing satisfies IndexingSink.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol


@dataclass(frozen=True)
class StoredObject:
    """An artifact as held by a store.

    Attributes:
        key: Object key
        text: UTF-8 text content
        metadata: Object metadata (string values)
    """

    key: str
    text: str
    metadata: Dict[str, str] = field(default_factory=dict)


class OutputStore(Protocol):
    """Durable, key-addressed text store.

    put() must be all-or-nothing: a reader sees either the previous object
    or the complete new one, never a partial write. Writing the same key
    twice with the same text and metadata must leave the store unchanged.
    """

    async def put(
        self, key: str, text: str, metadata: Optional[Mapping[str, str]] = None
    ) -> None:
        ...

    async def get(self, key: str) -> Optional[StoredObject]:
        ...


class IndexingSink(Protocol):
    """Downstream consumer of finished Markdown artifacts."""

    async def index(
        self,
        document_id: str,
        version: str,
        markdown: str,
        metadata: Mapping[str, Any],
    ) -> None:
        ...
