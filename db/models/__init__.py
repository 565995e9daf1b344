"""Database models package."""

from db.models.base_model import BaseModel, TimestampMixin, utcnow
from db.models.records import Event, PastQuestion, search_vector

__all__ = [
    # Base models and mixins
    "BaseModel",
    "TimestampMixin",
    "utcnow",
    # Record models
    "Event",
    "PastQuestion",
    "search_vector",
]
