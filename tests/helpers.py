"""Test doubles shared by the test modules."""

from datetime import UTC, datetime, timedelta

from apps.api.images import HostedImage, ImageHost
from packages.shared.exceptions import ImageHostError

ADMIN_SECRET = "test-admin-secret"


class StaticMonitor:
    """Connectivity monitor with a fixed answer."""

    def __init__(self, connected: bool):
        self.connected = connected
        self.marked_unavailable = 0

    async def is_connected(self) -> bool:
        return self.connected

    def mark_unavailable(self) -> None:
        self.marked_unavailable += 1
        self.connected = False


class FakeImageHost(ImageHost):
    """Image host that never leaves the process."""

    def __init__(self) -> None:
        super().__init__(cloud_name="test", api_key="key", api_secret="secret")
        self.uploaded: list[bytes] = []
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self.on_delete = None

    async def upload(self, payload: bytes) -> HostedImage:
        if self.fail_upload:
            raise ImageHostError("upload refused")
        self.uploaded.append(payload)
        n = len(self.uploaded)
        return HostedImage(url=f"https://img.example.com/events/{n}.png", public_id=f"events/{n}")

    async def delete(self, public_id: str) -> None:
        if self.on_delete is not None:
            await self.on_delete(public_id)
        if self.fail_delete:
            raise ImageHostError("delete refused")
        self.deleted.append(public_id)


class Clock:
    """Manually advanced clock for timestamps and expiry."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now
