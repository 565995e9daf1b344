"""
Record and filter types shared by the durable and in-memory backends.

Records are plain dataclasses: both backends produce exactly these
objects, so callers can't tell which one served a request.
"""

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from db.models.base_model import utcnow
from packages.shared.exceptions import ValidationError

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

R = TypeVar("R")


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_event_date(value: Any) -> datetime:
    """
    Parse an event date from an ISO-8601 date or datetime.

    Raises:
        ValidationError: If the value can't be parsed
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("date is required")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(
            f"Invalid date: {value!r}",
            errors=[{"field": "date", "message": "Expected an ISO-8601 date"}],
        ) from None
    return ensure_utc(parsed)


def _blank_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# =============================================================================
# Records
# =============================================================================


@dataclass
class PastQuestionRecord:
    """One uploaded past-question document."""

    id: str
    title: str
    file_key: str
    file_name: str
    mime_type: str
    size: int
    subject: str | None = None
    class_name: str | None = None
    year: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class EventRecord:
    """A calendar / announcement event."""

    id: str
    title: str
    description: str
    date: datetime
    location: str
    image_url: str | None = None
    image_public_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# =============================================================================
# Create payloads
# =============================================================================


@dataclass
class PastQuestionCreate:
    """Input for creating a past question; the blob is already stored."""

    title: str
    file_key: str
    file_name: str
    mime_type: str
    size: int
    subject: str | None = None
    class_name: str | None = None
    year: str | None = None

    def __post_init__(self) -> None:
        self.title = (self.title or "").strip()
        if not self.title:
            raise ValidationError("Title is required")
        self.subject = _blank_to_none(self.subject)
        self.class_name = _blank_to_none(self.class_name)
        self.year = _blank_to_none(self.year)


@dataclass
class EventCreate:
    """Input for creating an event."""

    title: str
    description: str
    date: datetime
    location: str
    image_url: str | None = None
    image_public_id: str | None = None

    def __post_init__(self) -> None:
        self.title = (self.title or "").strip()
        self.location = (self.location or "").strip()
        missing_date = self.date is None or (isinstance(self.date, str) and not self.date.strip())
        if not self.title or not (self.description or "").strip() or not self.location or missing_date:
            raise ValidationError("Missing required fields: title, description, date, location")
        self.date = parse_event_date(self.date)


def field_names(record_type: type) -> set[str]:
    return {f.name for f in fields(record_type)}


# Fields a partial update may touch; identity and created_at are immutable
PAST_QUESTION_UPDATABLE = field_names(PastQuestionCreate)
EVENT_UPDATABLE = field_names(EventCreate)


def clean_changes(changes: dict[str, Any], allowed: set[str]) -> dict[str, Any]:
    """
    Validate a partial update.

    Raises:
        ValidationError: On unknown or immutable fields
    """
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(unknown)}")
    cleaned = dict(changes)
    if "date" in cleaned:
        cleaned["date"] = parse_event_date(cleaned["date"])
    for required in ("title", "description", "location", "file_key", "file_name", "mime_type"):
        if required in cleaned and not (cleaned[required] or "").strip():
            raise ValidationError(f"{required} cannot be empty")
    # Normalize the way the create payloads do
    for name in ("title", "location"):
        if name in cleaned:
            cleaned[name] = cleaned[name].strip()
    for name in ("subject", "class_name", "year"):
        if name in cleaned:
            cleaned[name] = _blank_to_none(cleaned[name])
    return cleaned


# =============================================================================
# Filters and pages
# =============================================================================


def _parse_int(name: str, value: Any, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None


@dataclass(frozen=True)
class PastQuestionFilters:
    """Normalized past-question list request."""

    q: str | None = None
    subject: str | None = None
    class_name: str | None = None
    year: str | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @classmethod
    def from_params(
        cls,
        q: Any = None,
        subject: Any = None,
        class_name: Any = None,
        year: Any = None,
        limit: Any = None,
        offset: Any = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> "PastQuestionFilters":
        """
        Build filters from loosely typed request values.

        Blank strings count as absent; limit is capped at `max_limit`.

        Raises:
            ValidationError: If limit/offset aren't integers or are out of range
        """
        parsed_limit = _parse_int("limit", limit, default_limit)
        parsed_offset = _parse_int("offset", offset, 0)
        if parsed_limit < 1:
            raise ValidationError("limit must be at least 1")
        if parsed_offset < 0:
            raise ValidationError("offset must not be negative")
        return cls(
            q=_blank_to_none(q),
            subject=_blank_to_none(subject),
            class_name=_blank_to_none(class_name),
            year=_blank_to_none(year),
            limit=min(parsed_limit, max_limit),
            offset=parsed_offset,
        )


@dataclass(frozen=True)
class EventFilters:
    """Normalized event list request (free text only)."""

    q: str | None = None

    @classmethod
    def from_params(cls, q: Any = None) -> "EventFilters":
        return cls(q=_blank_to_none(q))


@dataclass
class Page(Generic[R]):
    """A page of results plus the size of the filtered set."""

    items: list[R]
    total: int
