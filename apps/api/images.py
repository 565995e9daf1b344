"""
Event image hosting on Cloudinary.

The SDK is synchronous, so calls run in a worker thread.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Any

import cloudinary.exceptions
import cloudinary.uploader

from packages.shared.exceptions import ImageHostError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostedImage:
    url: str
    public_id: str


class ImageHost:
    """Thin async wrapper around `cloudinary.uploader`."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = "events"):
        self.folder = folder
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    @property
    def configured(self) -> bool:
        return all(self._credentials.values())

    def _require_configured(self) -> None:
        if not self.configured:
            raise ImageHostError("Image host is not configured")

    async def upload(self, payload: bytes) -> HostedImage:
        """
        Upload an image and return its public URL and id.

        Raises:
            ImageHostError: If the host is unconfigured or rejects the upload
        """
        self._require_configured()
        try:
            result: dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(payload),
                folder=self.folder,
                resource_type="image",
                **self._credentials,
            )
        except (cloudinary.exceptions.Error, OSError) as e:
            raise ImageHostError(f"Image upload failed: {e}") from e

        url = result.get("secure_url") or result.get("url")
        public_id = result.get("public_id")
        if not url or not public_id:
            raise ImageHostError("Image host returned no url/public_id")
        logger.info(f"Uploaded event image {public_id}")
        return HostedImage(url=url, public_id=public_id)

    async def delete(self, public_id: str) -> None:
        """
        Destroy a hosted image.

        Raises:
            ImageHostError: If the host is unconfigured or the call fails
        """
        self._require_configured()
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type="image",
                **self._credentials,
            )
        except (cloudinary.exceptions.Error, OSError) as e:
            raise ImageHostError(f"Image delete failed: {e}") from e
        if result.get("result") not in ("ok", "not found"):
            raise ImageHostError(f"Image delete returned {result.get('result')!r}")
        logger.info(f"Deleted event image {public_id}")


async def delete_image_quietly(host: ImageHost, public_id: str | None) -> None:
    """Post-commit cleanup: failures are logged, never raised."""
    if not public_id:
        return
    try:
        await host.delete(public_id)
    except ImageHostError as e:
        logger.warning(f"Could not delete event image {public_id}: {e.message}")
