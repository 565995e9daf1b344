"""
Durable backend on SQLAlchemy (PostgreSQL in production, SQLite in tests).
"""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.models.records import Event, PastQuestion
from packages.records.base import RecordRepository
from packages.records.query import event_predicates, past_question_predicates
from packages.records.schemas import (
    EventFilters,
    EventRecord,
    Page,
    PastQuestionFilters,
    PastQuestionRecord,
    ensure_utc,
    field_names,
)
from packages.shared.exceptions import StorageConnectivityError

logger = logging.getLogger(__name__)


def _parse_id(record_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


class SqlRepository(RecordRepository):
    """Shared CRUD for one ORM model; subclasses add the list query."""

    model: type
    record_type: type
    datetime_fields: tuple[str, ...] = ("created_at", "updated_at")

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], dialect: str):
        """
        Args:
            session_factory: Factory bound to the durable engine
            dialect: Engine dialect name; selects the text-search strategy
        """
        self.session_factory = session_factory
        self.dialect = dialect
        self._fields = field_names(self.record_type)

    @property
    def mode(self) -> str:
        return "durable"

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, mapping connection failures to StorageConnectivityError."""
        try:
            async with self.session_factory() as session:
                yield session
        except (OperationalError, InterfaceError, OSError, TimeoutError) as e:
            logger.warning(f"Durable store call failed on {self.model.__tablename__}: {e}")
            raise StorageConnectivityError() from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.warning(f"Connection invalidated on {self.model.__tablename__}: {e}")
                raise StorageConnectivityError() from e
            raise

    def _to_record(self, row: Any):
        values = {name: getattr(row, name) for name in self._fields}
        values["id"] = str(row.id)
        for name in self.datetime_fields:
            values[name] = ensure_utc(values[name])
        return self.record_type(**values)

    async def create(self, data, now: datetime):
        row = self.model(**asdict(data), created_at=now, updated_at=now)
        commit_sent = False
        try:
            async with self._session() as session:
                # Connect up front so a dead store fails before anything is sent
                await session.connection()
                session.add(row)
                commit_sent = True
                await session.commit()
                return self._to_record(row)
        except StorageConnectivityError as e:
            # The insert may have landed; replaying it could duplicate the record
            e.replayable = not commit_sent
            raise

    async def get(self, record_id: str):
        row_id = _parse_id(record_id)
        if row_id is None:
            return None
        async with self._session() as session:
            row = await session.get(self.model, row_id)
            return self._to_record(row) if row is not None else None

    async def update(self, record_id: str, changes: dict[str, Any], now: datetime):
        row_id = _parse_id(record_id)
        if row_id is None:
            return None
        async with self._session() as session:
            row = await session.get(self.model, row_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, value)
            row.updated_at = now
            await session.commit()
            return self._to_record(row)

    async def delete(self, record_id: str):
        row_id = _parse_id(record_id)
        if row_id is None:
            return None
        async with self._session() as session:
            row = await session.get(self.model, row_id)
            if row is None:
                return None
            record = self._to_record(row)
            await session.delete(row)
            await session.commit()
            return record


class SqlPastQuestionRepository(SqlRepository):
    """Past questions in the `past_questions` table."""

    model = PastQuestion
    record_type = PastQuestionRecord

    async def list(self, filters: PastQuestionFilters) -> Page[PastQuestionRecord]:
        predicates = past_question_predicates(filters, self.dialect)
        stmt = (
            select(PastQuestion)
            .where(*predicates)
            .order_by(PastQuestion.created_at.desc(), PastQuestion.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        count_stmt = select(func.count()).select_from(PastQuestion).where(*predicates)

        async with self._session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            total = (await session.execute(count_stmt)).scalar_one()

        return Page(items=[self._to_record(row) for row in rows], total=total)


class SqlEventRepository(SqlRepository):
    """Events in the `events` table."""

    model = Event
    record_type = EventRecord
    datetime_fields = ("date", "created_at", "updated_at")

    async def list(self, filters: EventFilters) -> list[EventRecord]:
        stmt = (
            select(Event)
            .where(*event_predicates(filters, self.dialect))
            .order_by(Event.date.desc(), Event.id)
        )
        async with self._session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._to_record(row) for row in rows]
