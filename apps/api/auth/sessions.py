"""
In-process admin session registry.

Tokens are opaque random strings mapped to their expiry. Nothing is
persisted: restarting the process logs every admin out.
"""

import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from db.models.base_model import utcnow
from packages.shared.exceptions import AuthError, ValidationError

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


@dataclass(frozen=True)
class AdminSession:
    token: str
    created_at: datetime
    expires_at: datetime


class AdminSessionRegistry:
    """
    Issues, verifies and revokes admin bearer tokens.

    A token is valid while it is registered and the clock hasn't passed its
    expiry. Expired tokens are removed the next time someone verifies them.
    """

    def __init__(
        self,
        admin_secret: str,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ):
        self._admin_secret = admin_secret
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, AdminSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: object) -> bool:
        return token in self._sessions

    def check_secret(self, candidate: str | None) -> bool:
        """Constant-time comparison against the shared admin secret."""
        if not candidate:
            return False
        return secrets.compare_digest(candidate.encode(), self._admin_secret.encode())

    def login(self, password: str | None) -> AdminSession:
        """
        Open a session for the admin.

        Raises:
            ValidationError: If no password was supplied
            AuthError: If the password doesn't match the admin secret
        """
        if not password:
            raise ValidationError("Password is required")
        if not self.check_secret(password):
            logger.warning("Admin login rejected: invalid password")
            raise AuthError("Invalid password")

        now = self._clock()
        with self._lock:
            token = secrets.token_hex(TOKEN_BYTES)
            while token in self._sessions:
                token = secrets.token_hex(TOKEN_BYTES)
            session = AdminSession(token=token, created_at=now, expires_at=now + self.ttl)
            self._sessions[token] = session

        logger.info(f"Admin session opened, expires at {session.expires_at.isoformat()}")
        return session

    def verify(self, token: str | None) -> AdminSession:
        """
        Return the live session for `token`.

        Raises:
            AuthError: If the token is missing, unknown or expired
        """
        if not token:
            raise AuthError("No token provided")

        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise AuthError("Invalid token")
            if self._clock() > session.expires_at:
                del self._sessions[token]
                raise AuthError("Token expired")
            return session

    def logout(self, token: str | None) -> None:
        """Forget the token; unknown or missing tokens are ignored."""
        if not token:
            return
        with self._lock:
            removed = self._sessions.pop(token, None)
        if removed is not None:
            logger.info("Admin session closed")
