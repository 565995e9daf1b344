"""Abstract base class for record repositories."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Generic, TypeVar

R = TypeVar("R")  # record type
C = TypeVar("C")  # create payload type
F = TypeVar("F")  # filter type
L = TypeVar("L")  # list result type


class RecordRepository(ABC, Generic[R, C, F, L]):
    """
    Persistence contract for one record kind.

    Implemented once against the durable SQL store and once against an
    in-process collection; `RecordStore` picks between them per call.
    """

    @property
    @abstractmethod
    def mode(self) -> str:
        """Return the backing mode ('durable' or 'memory')."""
        pass

    @abstractmethod
    async def create(self, data: C, now: datetime) -> R:
        """Assign identity and timestamps, persist, return the stored record."""
        pass

    @abstractmethod
    async def get(self, record_id: str) -> R | None:
        """Return the record, or None if the id is unknown."""
        pass

    @abstractmethod
    async def list(self, filters: F) -> L:
        """Return matching records (a Page or a plain list, depending on kind)."""
        pass

    @abstractmethod
    async def update(self, record_id: str, changes: dict[str, Any], now: datetime) -> R | None:
        """Merge the supplied fields, refresh updated_at, return the new record."""
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> R | None:
        """Remove the record and return it, or None if the id is unknown."""
        pass
