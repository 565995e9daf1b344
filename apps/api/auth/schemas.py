"""Pydantic schemas for admin authentication."""

from datetime import datetime

from pydantic import BaseModel

# =============================================================================
# Request Schemas
# =============================================================================


class AdminLogin(BaseModel):
    """Admin login request."""

    password: str | None = None


# =============================================================================
# Response Schemas
# =============================================================================


class AdminLoginResponse(BaseModel):
    """Session token issued after a successful login."""

    token: str
    expires_at: datetime
    message: str = "Login successful"


class SessionStatus(BaseModel):
    """Result of verifying a session token."""

    valid: bool
    expires_at: datetime


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
