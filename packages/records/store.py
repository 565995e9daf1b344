"""
Dual-mode record store.

Each call asks the connectivity monitor which backend to use. When the
durable store is reachable the SQL repository serves the call; otherwise
(and only if fallback is allowed) the in-memory repository does. A
connectivity failure in the middle of a durable call flips the monitor and
replays the call against the fallback, unless the durable store may
already have applied it.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from db.models.base_model import utcnow
from db.session import ConnectivityMonitor, SchemaGuard
from packages.records.base import RecordRepository
from packages.records.schemas import clean_changes
from packages.shared.exceptions import StorageConnectivityError

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")


class RecordStore(Generic[R]):
    """
    Facade over a durable and a fallback repository for one record kind.

    Args:
        durable: Repository backed by the SQL store
        fallback: In-process repository with the same contract
        monitor: Connectivity monitor for the durable store
        allow_fallback: Whether the fallback may serve requests at all
        updatable: Field names a partial update may touch
        name: Record kind, used in log messages
        clock: Source of creation/update timestamps
        schema: Creates the durable schema before the first durable call
    """

    def __init__(
        self,
        durable: RecordRepository,
        fallback: RecordRepository,
        monitor: ConnectivityMonitor,
        allow_fallback: bool,
        updatable: set[str],
        name: str = "record",
        clock: Callable[[], datetime] = utcnow,
        schema: SchemaGuard | None = None,
    ):
        self.durable = durable
        self.fallback = fallback
        self.monitor = monitor
        self.allow_fallback = allow_fallback
        self.updatable = updatable
        self.name = name
        self.schema = schema
        self._clock = clock

    def _fallback_or_raise(self) -> RecordRepository:
        if not self.allow_fallback:
            raise StorageConnectivityError()
        return self.fallback

    async def _select(self) -> RecordRepository:
        if not await self.monitor.is_connected():
            return self._fallback_or_raise()
        if self.schema is not None:
            try:
                await self.schema.ensure()
            except (SQLAlchemyError, OSError, TimeoutError) as e:
                logger.warning(f"Could not prepare record store schema: {e}")
                self.monitor.mark_unavailable()
                return self._fallback_or_raise()
        return self.durable

    async def _run(self, operation: Callable[[RecordRepository], Awaitable[T]]) -> T:
        repository = await self._select()
        try:
            return await operation(repository)
        except StorageConnectivityError as e:
            if repository is self.fallback:
                raise
            self.monitor.mark_unavailable()
            if not self.allow_fallback or not e.replayable:
                raise
            logger.warning(f"Retrying {self.name} operation on in-memory fallback")
            return await operation(self.fallback)

    async def current_mode(self) -> str:
        """Return 'durable' or 'memory' for the backend the next call would use."""
        if await self.monitor.is_connected() or not self.allow_fallback:
            return self.durable.mode
        return self.fallback.mode

    async def create(self, data) -> R:
        now = self._clock()
        return await self._run(lambda repo: repo.create(data, now))

    async def get(self, record_id: str) -> R | None:
        return await self._run(lambda repo: repo.get(record_id))

    async def list(self, filters) -> Any:
        return await self._run(lambda repo: repo.list(filters))

    async def update(self, record_id: str, changes: dict[str, Any]) -> R | None:
        """
        Merge `changes` into the record.

        Raises:
            ValidationError: If a field is unknown, immutable or emptied
        """
        cleaned = clean_changes(changes, self.updatable)
        now = self._clock()
        return await self._run(lambda repo: repo.update(record_id, cleaned, now))

    async def delete(self, record_id: str) -> R | None:
        return await self._run(lambda repo: repo.delete(record_id))
