"""S3/MinIO blob storage backend."""

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack

import aioboto3
from aiobotocore.config import AioConfig
from botocore.exceptions import ClientError

from packages.shared.exceptions import NotFoundError, StorageConfigError
from packages.shared.storage.base import CHUNK_SIZE, BlobStore, BlobStream, StoredBlob

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/pdf"

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class S3BlobStore(BlobStore):
    """
    S3/MinIO storage backend.

    Supports both AWS S3 and MinIO (via endpoint_url configuration).
    Keys are organized by prefix and date: past-questions/YYYY-MM-DD/<uuid>.<ext>
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        prefix: str = "past-questions",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        force_path_style: bool = False,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize S3 blob storage.

        Args:
            bucket: S3 bucket name (an empty value fails every call)
            endpoint_url: Custom endpoint URL for MinIO (None for AWS S3)
            region: AWS region
            prefix: Key prefix for all uploads
            aws_access_key_id: AWS access key (optional, uses env/IAM if not set)
            aws_secret_access_key: AWS secret key (optional, uses env/IAM if not set)
            force_path_style: Use path-style addressing (MinIO and most S3 clones)
            timeout_seconds: Connect/read timeout for each request
        """
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.prefix = prefix.strip("/")
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.force_path_style = force_path_style
        self.timeout_seconds = timeout_seconds
        self._session = aioboto3.Session()

    @property
    def backend_name(self) -> str:
        return "s3"

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise StorageConfigError("S3_BUCKET is required for S3 storage")
        return self.bucket

    def _get_client_kwargs(self) -> dict:
        """Build kwargs for S3 client."""
        config_kwargs: dict = {
            "connect_timeout": self.timeout_seconds,
            "read_timeout": self.timeout_seconds,
        }
        if self.force_path_style:
            config_kwargs["s3"] = {"addressing_style": "path"}

        kwargs = {
            "region_name": self.region,
            "config": AioConfig(**config_kwargs),
        }
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if self.aws_access_key_id and self.aws_secret_access_key:
            kwargs["aws_access_key_id"] = self.aws_access_key_id
            kwargs["aws_secret_access_key"] = self.aws_secret_access_key
        return kwargs

    def generate_key(self, original_name: str | None) -> str:
        """S3 key in format: prefix/YYYY-MM-DD/<uuid>.<ext>"""
        key = super().generate_key(original_name)
        return f"{self.prefix}/{key}" if self.prefix else key

    async def upload(
        self,
        payload: bytes,
        mime_type: str | None,
        original_name: str,
    ) -> StoredBlob:
        """Store the payload with a single PutObject."""
        bucket = self._require_bucket()
        key = self.generate_key(original_name)

        async with self._session.client("s3", **self._get_client_kwargs()) as s3:
            await s3.put_object(
                Bucket=bucket,
                Key=key,
                Body=payload,
                ContentType=mime_type or DEFAULT_CONTENT_TYPE,
            )

        logger.info(f"Stored blob {key} ({len(payload)} bytes) in bucket {bucket}")
        return StoredBlob(key=key, size=len(payload))

    async def fetch(self, key: str) -> BlobStream:
        """
        Open an object for streaming.

        The client stays open until the returned stream is exhausted.

        Raises:
            NotFoundError: If the object doesn't exist
        """
        bucket = self._require_bucket()

        stack = AsyncExitStack()
        s3 = await stack.enter_async_context(
            self._session.client("s3", **self._get_client_kwargs())
        )
        try:
            response = await s3.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            await stack.aclose()
            if e.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                raise NotFoundError("Blob", key) from None
            raise
        except BaseException:
            await stack.aclose()
            raise

        body = response["Body"]

        async def chunks() -> AsyncIterator[bytes]:
            try:
                async for chunk in body.iter_chunks(CHUNK_SIZE):
                    yield chunk
            finally:
                body.close()
                await stack.aclose()

        return BlobStream(chunks=chunks(), content_length=response.get("ContentLength"))
