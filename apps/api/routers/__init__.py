"""API routers package."""

from apps.api.routers import admin, events, health, past_questions

__all__ = ["admin", "events", "health", "past_questions"]
