"""Local disk blob storage backend."""

import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

from packages.shared.exceptions import NotFoundError
from packages.shared.storage.base import CHUNK_SIZE, BlobStore, BlobStream, StoredBlob

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """
    Local disk storage backend.

    Files are organized by date: <base_path>/YYYY-MM-DD/<uuid>.<ext>
    """

    def __init__(self, base_path: str = "uploads"):
        """
        Initialize local blob storage.

        Args:
            base_path: Base directory for blob storage
        """
        self.base_path = Path(base_path)
        # Create base directory synchronously on init
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def backend_name(self) -> str:
        return "local"

    def _resolve(self, key: str) -> Path:
        """Map a key to a path under base_path, rejecting traversal."""
        base = self.base_path.resolve()
        path = base.joinpath(*key.split("/")).resolve()
        if path == base or base not in path.parents:
            raise NotFoundError("Blob", key)
        return path

    async def upload(
        self,
        payload: bytes,
        mime_type: str | None,
        original_name: str,
    ) -> StoredBlob:
        """
        Write a payload to local disk.

        The payload goes to a temporary sibling first and is renamed into
        place, so readers never observe a partially written file.
        """
        key = self.generate_key(original_name)
        full_path = self._resolve(key)

        await aiofiles.os.makedirs(full_path.parent, exist_ok=True)

        partial_path = full_path.with_name(full_path.name + ".part")
        async with aiofiles.open(partial_path, "wb") as f:
            await f.write(payload)
        await aiofiles.os.replace(partial_path, full_path)

        logger.info(f"Stored blob {key} ({len(payload)} bytes) on local disk")
        return StoredBlob(key=key, size=len(payload))

    async def fetch(self, key: str) -> BlobStream:
        """
        Open a blob on local disk for streaming.

        Raises:
            NotFoundError: If the file doesn't exist
        """
        full_path = self._resolve(key)
        if not full_path.is_file():
            raise NotFoundError("Blob", key)

        size = os.stat(full_path).st_size
        handle = await aiofiles.open(full_path, "rb")

        async def chunks() -> AsyncIterator[bytes]:
            try:
                while True:
                    chunk = await handle.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
            finally:
                await handle.close()

        return BlobStream(chunks=chunks(), content_length=size)
