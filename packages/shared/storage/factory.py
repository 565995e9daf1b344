"""Factory for creating blob storage backends based on configuration."""

import logging
from typing import TYPE_CHECKING

from packages.shared.storage.base import BlobStore
from packages.shared.storage.local import LocalBlobStore

if TYPE_CHECKING:
    from apps.api.config import Settings

logger = logging.getLogger(__name__)


def get_storage_backend_from_settings(settings: "Settings") -> BlobStore:
    """
    Create the blob store selected by settings.storage_backend.

    Selection happens once at startup; every request then goes to the
    same backend.

    Args:
        settings: Application settings

    Returns:
        Configured BlobStore instance
    """
    if settings.storage_backend == "s3":
        from packages.shared.storage.s3 import S3BlobStore

        if not settings.s3_bucket:
            logger.warning("S3 storage selected but S3_BUCKET is empty; uploads will fail")
        logger.info(f"Using S3 blob storage (bucket={settings.s3_bucket!r})")
        return S3BlobStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            prefix=settings.s3_prefix,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            force_path_style=settings.s3_force_path_style,
        )

    logger.info(f"Using local blob storage at {settings.local_upload_path}")
    return LocalBlobStore(base_path=settings.local_upload_path)
