"""FastAPI dependencies for admin authentication."""

from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from apps.api.auth.sessions import AdminSession, AdminSessionRegistry
from apps.api.dependencies import get_session_registry
from packages.shared.exceptions import AuthError

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """Extract the token from `Authorization: Bearer <token>`."""
    return credentials.credentials if credentials else None


def get_admin_api_key_header(
    x_admin_api_key: Annotated[str | None, Header(alias="X-Admin-Api-Key")] = None,
) -> str | None:
    """Extract the static admin key from the X-Admin-Api-Key header."""
    return x_admin_api_key


def require_admin(
    token: str | None = Depends(get_bearer_token),
    api_key: str | None = Depends(get_admin_api_key_header),
    sessions: AdminSessionRegistry = Depends(get_session_registry),
) -> AdminSession | None:
    """Require an admin session token or the static admin API key.

    Priority:
    1. X-Admin-Api-Key header (if present)
    2. Authorization: Bearer <session token>

    Returns the session for bearer auth, None for API-key auth.
    """
    if api_key:
        if not sessions.check_secret(api_key):
            raise AuthError("Invalid admin API key")
        return None

    if token:
        return sessions.verify(token)

    raise AuthError("Not authenticated. Provide Authorization header or X-Admin-Api-Key.")
