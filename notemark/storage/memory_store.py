"""In-process output store."""

import logging
from typing import Dict, List, Mapping, Optional

from .base import StoredObject

logger = logging.getLogger(__name__)


class InMemoryStore:
    """OutputStore backed by a dict.

    Used by tests and local runs. Counts writes so idempotent re-delivery
    can be observed (same objects, higher put_count).
    """

    def __init__(self):
        self._objects: Dict[str, StoredObject] = {}
        self.put_count = 0

    async def put(
        self, key: str, text: str, metadata: Optional[Mapping[str, str]] = None
    ) -> None:
        self._objects[key] = StoredObject(key=key, text=text, metadata=dict(metadata or {}))
        self.put_count += 1
        logger.debug(f"Stored {key} ({len(text)} chars)")

    async def get(self, key: str) -> Optional[StoredObject]:
        return self._objects.get(key)

    def keys(self, prefix: str = "") -> List[str]:
        """List stored keys, sorted, optionally filtered by prefix."""
        return sorted(key for key in self._objects if key.startswith(prefix))

    def __contains__(self, key: str) -> bool:
        return key in self._objects

    def __len__(self) -> int:
        return len(self._objects)
