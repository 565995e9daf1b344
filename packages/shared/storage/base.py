"""Abstract base class for blob storage backends."""

import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePosixPath

# Used when the uploaded filename carries no extension
DEFAULT_EXTENSION = ".pdf"

# Read size for streamed downloads
CHUNK_SIZE = 64 * 1024

_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


@dataclass
class StoredBlob:
    """Information about a stored blob."""

    key: str
    size: int


@dataclass
class BlobStream:
    """
    A blob opened for reading.

    `chunks` yields the payload in order and releases the underlying
    file handle or HTTP response when exhausted or closed.
    """

    chunks: AsyncIterator[bytes]
    content_length: int | None = None

    async def read(self) -> bytes:
        """Drain the stream into memory."""
        return b"".join([chunk async for chunk in self.chunks])


class BlobStore(ABC):
    """
    Abstract base for blob storage backends.

    Both implementations expose the same two operations, so callers never
    need to know whether files live on local disk or in an object store.
    Keys look like ``YYYY-MM-DD/<uuid>.<ext>``; backends may add a prefix.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of this backend (e.g., 'local', 's3')."""
        pass

    @abstractmethod
    async def upload(
        self,
        payload: bytes,
        mime_type: str | None,
        original_name: str,
    ) -> StoredBlob:
        """
        Store a payload under a newly generated key.

        Args:
            payload: Full file contents
            mime_type: MIME type of the file
            original_name: Uploaded filename (only its extension is kept)

        Returns:
            StoredBlob with the generated key and byte size
        """
        pass

    @abstractmethod
    async def fetch(self, key: str) -> BlobStream:
        """
        Open a stored blob for streaming.

        Args:
            key: Key returned from upload()

        Returns:
            BlobStream over the payload

        Raises:
            NotFoundError: If no blob exists under the key
        """
        pass

    @staticmethod
    def extension_for(original_name: str | None) -> str:
        """Return the sanitized extension of a filename, or the default one."""
        suffix = PurePosixPath((original_name or "").replace("\\", "/")).suffix
        if not _EXTENSION_RE.match(suffix):
            return DEFAULT_EXTENSION
        return suffix

    @classmethod
    def generate_key(cls, original_name: str | None) -> str:
        """Build a collision-resistant key: date partition, random token, extension."""
        folder = datetime.now(UTC).strftime("%Y-%m-%d")
        return f"{folder}/{uuid.uuid4()}{cls.extension_for(original_name)}"
