"""
Blob storage backends for uploaded files.

Provides abstract interface and implementations for:
- Local disk storage (development)
- S3/MinIO storage (production)
"""

from packages.shared.storage.base import BlobStore, BlobStream, StoredBlob
from packages.shared.storage.factory import get_storage_backend_from_settings
from packages.shared.storage.local import LocalBlobStore
from packages.shared.storage.s3 import S3BlobStore

__all__ = [
    "BlobStore",
    "BlobStream",
    "LocalBlobStore",
    "S3BlobStore",
    "StoredBlob",
    "get_storage_backend_from_settings",
]
