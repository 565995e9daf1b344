"""
Async engine construction and durable-store connectivity tracking.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from db.base import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, connect_timeout: float = 3.0, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine with short timeouts.

    A small connect/command timeout makes an outage fail fast, which is what
    the fallback decision relies on.
    """
    url = make_url(database_url)
    kwargs: dict = {"echo": echo}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"timeout": connect_timeout}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
        kwargs["connect_args"] = {"timeout": connect_timeout, "command_timeout": connect_timeout}

    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used by the durable repositories."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables and indexes that don't exist yet."""
    # Registers the models on Base.metadata
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SchemaGuard:
    """
    Creates the schema the first time the durable store is reachable.

    The app may start on the fallback and only later see the store come
    up, so this runs lazily from the record stores as well as at startup.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.ready = False
        self._lock = asyncio.Lock()

    async def ensure(self) -> None:
        if self.ready:
            return
        async with self._lock:
            if self.ready:
                return
            await create_tables(self.engine)
            self.ready = True
            logger.info("Record store schema ready")


class ConnectivityMonitor:
    """
    Tracks whether the durable store is reachable.

    `is_connected()` probes with ``SELECT 1`` bounded by `timeout`. A probe
    result is reused for `probe_interval` seconds so a burst of requests
    doesn't turn into a burst of pings; `mark_unavailable()` lets a failed
    operation flip the state immediately.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        probe_interval: float = 2.0,
        timeout: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.engine = engine
        self.probe_interval = probe_interval
        self.timeout = timeout
        self._clock = clock
        self._connected: bool | None = None
        self._checked_at = 0.0
        self._lock = asyncio.Lock()

    @property
    def last_known_state(self) -> bool | None:
        """Result of the last probe, None before the first one."""
        return self._connected

    async def ping(self) -> bool:
        """Run one probe against the store, ignoring the cache."""
        try:
            async with asyncio.timeout(self.timeout):
                async with self.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            logger.debug(f"Record store probe failed: {e}")
            return False

    async def is_connected(self) -> bool:
        """Return the (possibly cached) connectivity state."""
        async with self._lock:
            now = self._clock()
            if self._connected is None or now - self._checked_at >= self.probe_interval:
                self._record(await self.ping())
                self._checked_at = now
            return bool(self._connected)

    def mark_unavailable(self) -> None:
        """Record a failure observed outside a probe."""
        self._record(False)
        self._checked_at = self._clock()

    def _record(self, connected: bool) -> None:
        if connected != self._connected:
            if connected:
                logger.info("Record store reachable; serving from durable store")
            elif self._connected is not None:
                logger.warning("Record store unreachable; switching to in-memory fallback")
        self._connected = connected
