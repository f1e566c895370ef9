"""Output store on the local filesystem.

Each key maps to a file under the store root. Object metadata is kept in a
JSON sidecar (``<key>.meta.json``) next to the content file.
"""

import asyncio
import json
import logging
import os
import tempfile
from typing import Dict, List, Mapping, Optional

from .base import StoredObject
from .errors import StorageError

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".meta.json"


class FilesystemStore:
    """OutputStore that writes artifacts below a root directory.

    Writes are atomic per file: content is staged in a temporary file in the
    target directory and moved into place with os.replace, so an abandoned
    attempt leaves either the old file or the new one. Blocking file I/O
    runs in a worker thread.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    async def put(
        self, key: str, text: str, metadata: Optional[Mapping[str, str]] = None
    ) -> None:
        """Write an object.

        Raises:
            StorageError: If the key escapes the root or the write fails
        """
        await asyncio.to_thread(self._put_sync, key, text, dict(metadata or {}))

    async def get(self, key: str) -> Optional[StoredObject]:
        """Read an object, or None if it does not exist.

        Raises:
            StorageError: If the key escapes the root or the read fails
        """
        return await asyncio.to_thread(self._get_sync, key)

    def path_for(self, key: str) -> str:
        """Resolve a key to a path under the root.

        Raises:
            StorageError: If the resolved path is outside the root directory
        """
        file_path = os.path.join(self.root, *key.split("/"))

        # Resolve symlinks on both sides before comparing
        real_root = os.path.realpath(self.root)
        real_path = os.path.realpath(file_path)
        if not real_path.startswith(real_root + os.sep):
            raise StorageError(
                key, "validate", f"Path traversal detected: {key} is outside {self.root}"
            )
        return file_path

    def list_keys(self, prefix: str = "") -> List[str]:
        """List stored keys (excluding metadata sidecars), sorted."""
        keys = []
        for dirpath, _, filenames in os.walk(self.root):
            for filename in filenames:
                if filename.endswith(METADATA_SUFFIX) or filename.startswith(".tmp-"):
                    continue
                rel_path = os.path.relpath(os.path.join(dirpath, filename), self.root)
                key = rel_path.replace(os.sep, "/")
                if key.startswith(prefix):
                    keys.append(key)
        return sorted(keys)

    def _put_sync(self, key: str, text: str, metadata: Dict[str, str]) -> None:
        file_path = self.path_for(key)
        # Sidecar first: a visible content file always has its metadata
        self._write_atomic(key, file_path + METADATA_SUFFIX, _encode_metadata(metadata))
        self._write_atomic(key, file_path, text)
        logger.debug(f"Wrote {key} ({len(text)} chars)")

    def _get_sync(self, key: str) -> Optional[StoredObject]:
        file_path = self.path_for(key)
        if not os.path.exists(file_path):
            return None

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                text = f.read()
            metadata: Dict[str, str] = {}
            sidecar = file_path + METADATA_SUFFIX
            if os.path.exists(sidecar):
                with open(sidecar, "r", encoding="utf-8") as f:
                    metadata = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(key, "read", str(e))

        return StoredObject(key=key, text=text, metadata=metadata)

    def _write_atomic(self, key: str, file_path: str, content: str) -> None:
        directory = os.path.dirname(file_path)
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise StorageError(key, "create_directory", str(e))

        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(temp_path, file_path)
        except OSError as e:
            try:
                os.remove(temp_path)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
            raise StorageError(key, "write", str(e))


def _encode_metadata(metadata: Mapping[str, str]) -> str:
    return json.dumps(dict(metadata), indent=2, sort_keys=True, ensure_ascii=False) + "\n"
