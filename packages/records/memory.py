"""
In-process fallback backend.

Used only while the durable store is unreachable and fallback is enabled.
Contents live in process memory and are lost on restart.
"""

import threading
from collections.abc import Callable
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Generic, TypeVar

from packages.records.base import RecordRepository
from packages.records.query import query_events, query_past_questions
from packages.records.schemas import (
    EventFilters,
    EventRecord,
    Page,
    PastQuestionFilters,
    PastQuestionRecord,
)

R = TypeVar("R")


class MemoryCollection(Generic[R]):
    """
    Insertion-ordered records with monotonically increasing integer ids.

    Every mutation holds one lock, so ids stay unique and reads see
    completed writes even when handlers run on worker threads.
    """

    def __init__(self) -> None:
        self._items: dict[str, R] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._items)

    def insert(self, build: Callable[[str], R]) -> R:
        """Allocate the next id, build the record with it and store it."""
        with self._lock:
            record_id = str(self._next_id)
            self._next_id += 1
            record = build(record_id)
            self._items[record_id] = record
            return record

    def get(self, record_id: str) -> R | None:
        return self._items.get(record_id)

    def snapshot(self) -> list[R]:
        """Records in insertion order."""
        with self._lock:
            return list(self._items.values())

    def replace(self, record_id: str, changes: dict[str, Any]) -> R | None:
        with self._lock:
            current = self._items.get(record_id)
            if current is None:
                return None
            updated = replace(current, **changes)
            self._items[record_id] = updated
            return updated

    def remove(self, record_id: str) -> R | None:
        with self._lock:
            return self._items.pop(record_id, None)


class MemoryRepository(RecordRepository):
    """Shared CRUD over a MemoryCollection."""

    record_type: type

    def __init__(self, collection: MemoryCollection | None = None):
        self.collection = collection if collection is not None else MemoryCollection()

    @property
    def mode(self) -> str:
        return "memory"

    async def create(self, data, now: datetime):
        fields = asdict(data)
        return self.collection.insert(
            lambda record_id: self.record_type(id=record_id, created_at=now, updated_at=now, **fields)
        )

    async def get(self, record_id: str):
        return self.collection.get(str(record_id))

    async def update(self, record_id: str, changes: dict[str, Any], now: datetime):
        return self.collection.replace(str(record_id), {**changes, "updated_at": now})

    async def delete(self, record_id: str):
        return self.collection.remove(str(record_id))


class MemoryPastQuestionRepository(MemoryRepository):
    """Past questions kept in process memory."""

    record_type = PastQuestionRecord

    async def list(self, filters: PastQuestionFilters) -> Page[PastQuestionRecord]:
        return query_past_questions(self.collection.snapshot(), filters)


class MemoryEventRepository(MemoryRepository):
    """Events kept in process memory."""

    record_type = EventRecord

    async def list(self, filters: EventFilters) -> list[EventRecord]:
        return query_events(self.collection.snapshot(), filters)
