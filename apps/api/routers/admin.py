"""Admin session routes."""

from fastapi import APIRouter, Depends

from apps.api.auth.dependencies import get_bearer_token
from apps.api.auth.schemas import AdminLogin, AdminLoginResponse, MessageResponse, SessionStatus
from apps.api.auth.sessions import AdminSessionRegistry
from apps.api.dependencies import get_session_registry

router = APIRouter(prefix="/auth/admin", tags=["Admin"])


@router.post("/login", response_model=AdminLoginResponse)
def login(
    data: AdminLogin | None = None,
    sessions: AdminSessionRegistry = Depends(get_session_registry),
) -> AdminLoginResponse:
    """Exchange the admin password for a session token."""
    session = sessions.login(data.password if data else None)
    return AdminLoginResponse(token=session.token, expires_at=session.expires_at)


@router.post("/logout", response_model=MessageResponse)
def logout(
    token: str | None = Depends(get_bearer_token),
    sessions: AdminSessionRegistry = Depends(get_session_registry),
) -> MessageResponse:
    """Revoke the presented token. Always succeeds."""
    sessions.logout(token)
    return MessageResponse(message="Logged out successfully")


@router.get("/verify", response_model=SessionStatus)
def verify(
    token: str | None = Depends(get_bearer_token),
    sessions: AdminSessionRegistry = Depends(get_session_registry),
) -> SessionStatus:
    """Check whether the presented token is still valid."""
    session = sessions.verify(token)
    return SessionStatus(valid=True, expires_at=session.expires_at)
