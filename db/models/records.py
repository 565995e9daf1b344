"""
Durable record models: past questions and events.

Each table carries a unique id index (primary key). Past questions also get a
compound (subject, class_name, year) index; both tables get a PostgreSQL
full-text GIN index that only exists on PostgreSQL.
"""

from datetime import datetime
from functools import reduce

from sqlalchemy import BigInteger, DateTime, Index, String, Text, func, literal_column
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.elements import ColumnElement

from db.models.base_model import BaseModel

TEXT_SEARCH_CONFIG = "english"


def search_vector(*columns: ColumnElement) -> ColumnElement:
    """
    Build ``to_tsvector('english', coalesce(a, '') || ' ' || coalesce(b, '') ...)``.

    The same expression backs the GIN index and the query predicate, so
    PostgreSQL can use the index for text search.
    """
    parts = [func.coalesce(column, literal_column("''")) for column in columns]
    document = reduce(lambda left, right: left.op("||")(literal_column("' '")).op("||")(right), parts)
    return func.to_tsvector(literal_column(f"'{TEXT_SEARCH_CONFIG}'"), document)


class PastQuestion(BaseModel):
    """One uploaded past-question document."""

    __tablename__ = "past_questions"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    class_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Blob reference
    file_key: Mapped[str] = mapped_column(String(512), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_past_questions_subject_class_year", "subject", "class_name", "year"),
    )

    # Fields covered by the full-text index
    @classmethod
    def text_search_columns(cls) -> tuple[ColumnElement, ...]:
        return (cls.title, cls.subject)


class Event(BaseModel):
    """A calendar / announcement event with an externally hosted image."""

    __tablename__ = "events"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    image_public_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @classmethod
    def text_search_columns(cls) -> tuple[ColumnElement, ...]:
        return (cls.title, cls.description, cls.location)


Index(
    "ix_past_questions_search",
    search_vector(*PastQuestion.text_search_columns()),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")

Index(
    "ix_events_search",
    search_vector(*Event.text_search_columns()),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
