"""Create past question and event tables

Creates:
- past_questions: uploaded documents with a blob key reference
- events: calendar/announcement entries with an optional hosted image

Revision ID: d4e5f6a7b8c9
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "d4e5f6a7b8c9"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # ==========================================================================
    # PAST QUESTIONS
    # ==========================================================================
    op.create_table(
        "past_questions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=True),
        sa.Column("class_name", sa.String(length=255), nullable=True),
        sa.Column("year", sa.String(length=32), nullable=True),
        sa.Column("file_key", sa.String(length=512), nullable=False, comment="Blob store key"),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False, comment="Size in bytes"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_past_questions_created_at", "past_questions", ["created_at"])
    op.create_index(
        "ix_past_questions_subject_class_year",
        "past_questions",
        ["subject", "class_name", "year"],
    )
    op.execute(
        "CREATE INDEX ix_past_questions_search ON past_questions USING gin "
        "(to_tsvector('english', coalesce(title, '') || ' ' || coalesce(subject, '')))"
    )

    # ==========================================================================
    # EVENTS
    # ==========================================================================
    op.create_table(
        "events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=True),
        sa.Column("image_public_id", sa.String(length=255), nullable=True, comment="Image host id"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_created_at", "events", ["created_at"])
    op.create_index("ix_events_date", "events", ["date"])
    op.execute(
        "CREATE INDEX ix_events_search ON events USING gin "
        "(to_tsvector('english', coalesce(title, '') || ' ' || coalesce(description, '') "
        "|| ' ' || coalesce(location, '')))"
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_events_search", table_name="events")
    op.drop_index("ix_events_date", table_name="events")
    op.drop_index("ix_events_created_at", table_name="events")
    op.drop_table("events")

    op.drop_index("ix_past_questions_search", table_name="past_questions")
    op.drop_index("ix_past_questions_subject_class_year", table_name="past_questions")
    op.drop_index("ix_past_questions_created_at", table_name="past_questions")
    op.drop_table("past_questions")
