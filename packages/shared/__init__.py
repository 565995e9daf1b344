"""Shared utilities package."""

from packages.shared.exceptions import (
    AppException,
    AuthError,
    ImageHostError,
    NotFoundError,
    StorageConfigError,
    StorageConnectivityError,
    ValidationError,
)

__all__ = [
    "AppException",
    "AuthError",
    "ImageHostError",
    "NotFoundError",
    "StorageConfigError",
    "StorageConnectivityError",
    "ValidationError",
]
