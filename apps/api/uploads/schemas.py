"""Pydantic schemas for past-question and event responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Past Questions
# =============================================================================


class PastQuestionResponse(BaseModel):
    """A stored past-question document."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    subject: str | None = None
    class_name: str | None = None
    year: str | None = None
    file_key: str
    file_name: str
    mime_type: str
    size: int = Field(..., ge=0, description="Size in bytes")
    created_at: datetime
    updated_at: datetime


class PastQuestionListResponse(BaseModel):
    """One page of past questions plus the filtered total."""

    items: list[PastQuestionResponse]
    total: int


# =============================================================================
# Events
# =============================================================================


class EventResponse(BaseModel):
    """A calendar / announcement event."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    date: datetime
    location: str
    image_url: str | None = None
    image_public_id: str | None = None
    created_at: datetime
    updated_at: datetime
