"""
Filter, search, sort and pagination rules.

The in-memory backend runs these functions directly over its collection.
The durable backend translates the same filters into SQL predicates
(see `past_question_predicates` / `event_predicates`) and then applies the
same ordering rules, so both paths return identically shaped results.

Free-text search is the one accepted divergence: on PostgreSQL the
full-text index (title + subject for past questions) decides matches,
while here it is a case-insensitive substring test over the concatenated
searchable fields.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import func, literal_column, or_
from sqlalchemy.sql.elements import ColumnElement

from db.models.records import Event, PastQuestion, TEXT_SEARCH_CONFIG, search_vector
from packages.records.schemas import (
    EventFilters,
    EventRecord,
    Page,
    PastQuestionFilters,
    PastQuestionRecord,
)

T = TypeVar("T")

PAST_QUESTION_SEARCH_FIELDS = ("title", "subject", "class_name", "year")
EVENT_SEARCH_FIELDS = ("title", "description", "location")


# =============================================================================
# In-memory predicates
# =============================================================================


def searchable_text(record: Any, field_names: Iterable[str]) -> str:
    """Join the non-empty searchable fields and lowercase them."""
    values = (getattr(record, name, None) for name in field_names)
    return " ".join(str(value) for value in values if value).lower()


def matches_text(record: Any, query: str | None, field_names: Iterable[str]) -> bool:
    if not query:
        return True
    return query.lower() in searchable_text(record, field_names)


def contains_ci(value: str | None, needle: str | None) -> bool:
    """Case-insensitive partial match; an absent needle matches anything."""
    if not needle:
        return True
    return value is not None and needle.lower() in value.lower()


def matches_past_question(record: PastQuestionRecord, filters: PastQuestionFilters) -> bool:
    if filters.year is not None and record.year != filters.year:
        return False
    return (
        contains_ci(record.subject, filters.subject)
        and contains_ci(record.class_name, filters.class_name)
        and matches_text(record, filters.q, PAST_QUESTION_SEARCH_FIELDS)
    )


def matches_event(record: EventRecord, filters: EventFilters) -> bool:
    return matches_text(record, filters.q, EVENT_SEARCH_FIELDS)


# =============================================================================
# Ordering and pagination
# =============================================================================


def newest_first(records: Iterable[T], key: Callable[[T], datetime]) -> list[T]:
    """Sort descending by key; ties keep their existing (insertion) order."""
    return sorted(records, key=key, reverse=True)


def paginate(records: Sequence[T], limit: int, offset: int) -> list[T]:
    return list(records[offset : offset + limit])


def query_past_questions(
    records: Iterable[PastQuestionRecord],
    filters: PastQuestionFilters,
) -> Page[PastQuestionRecord]:
    """Filter, sort by created_at desc, count, then slice."""
    matched = newest_first(
        (r for r in records if matches_past_question(r, filters)),
        key=lambda r: r.created_at,
    )
    return Page(items=paginate(matched, filters.limit, filters.offset), total=len(matched))


def query_events(records: Iterable[EventRecord], filters: EventFilters) -> list[EventRecord]:
    """Filter and sort by event date desc."""
    return newest_first(
        (r for r in records if matches_event(r, filters)),
        key=lambda r: r.date,
    )


# =============================================================================
# SQL predicates
# =============================================================================


def text_search_predicate(
    columns: Sequence[ColumnElement],
    query: str,
    dialect: str,
) -> ColumnElement[bool]:
    """
    Full-text match on PostgreSQL, substring match on other dialects.
    """
    if dialect == "postgresql":
        tsquery = func.plainto_tsquery(literal_column(f"'{TEXT_SEARCH_CONFIG}'"), query)
        return search_vector(*columns).op("@@")(tsquery)
    return or_(*(column.icontains(query, autoescape=True) for column in columns))


def past_question_predicates(filters: PastQuestionFilters, dialect: str) -> list[ColumnElement[bool]]:
    predicates: list[ColumnElement[bool]] = []
    if filters.q:
        predicates.append(text_search_predicate(PastQuestion.text_search_columns(), filters.q, dialect))
    if filters.year is not None:
        predicates.append(PastQuestion.year == filters.year)
    if filters.subject:
        predicates.append(PastQuestion.subject.icontains(filters.subject, autoescape=True))
    if filters.class_name:
        predicates.append(PastQuestion.class_name.icontains(filters.class_name, autoescape=True))
    return predicates


def event_predicates(filters: EventFilters, dialect: str) -> list[ColumnElement[bool]]:
    if not filters.q:
        return []
    return [text_search_predicate(Event.text_search_columns(), filters.q, dialect)]
