"""Past-question and event records with a durable and an in-memory backend."""

from packages.records.base import RecordRepository
from packages.records.memory import (
    MemoryCollection,
    MemoryEventRepository,
    MemoryPastQuestionRepository,
)
from packages.records.schemas import (
    EVENT_UPDATABLE,
    PAST_QUESTION_UPDATABLE,
    EventCreate,
    EventFilters,
    EventRecord,
    Page,
    PastQuestionCreate,
    PastQuestionFilters,
    PastQuestionRecord,
)
from packages.records.sql import SqlEventRepository, SqlPastQuestionRepository
from packages.records.store import RecordStore

__all__ = [
    "EVENT_UPDATABLE",
    "PAST_QUESTION_UPDATABLE",
    "EventCreate",
    "EventFilters",
    "EventRecord",
    "MemoryCollection",
    "MemoryEventRepository",
    "MemoryPastQuestionRepository",
    "Page",
    "PastQuestionCreate",
    "PastQuestionFilters",
    "PastQuestionRecord",
    "RecordRepository",
    "RecordStore",
    "SqlEventRepository",
    "SqlPastQuestionRepository",
]
