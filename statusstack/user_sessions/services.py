"""
Cookie session lifecycle: issue, validate, slide, destroy.

Sessions live in the database, never in process memory. Sliding refresh is a
plain last-write-wins UPDATE of one row; two requests refreshing the same
session concurrently both succeed and the later write wins.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Tuple

from django.contrib.auth import get_user_model
from django.utils import timezone

from .models import Session

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits, hex encoded to 64 chars


@dataclass(frozen=True)
class SessionConfig:
    cookie_name: str = "session_id"
    duration: timedelta = timedelta(days=30)
    refresh_threshold: timedelta = timedelta(days=15)
    secure: bool = True
    public_paths: Tuple[str, ...] = ()
    public_prefixes: Tuple[str, ...] = ()
    protected_prefixes: Tuple[str, ...] = ("/api/",)
    login_url: str = "/login/"
    clock: Callable[[], datetime] = field(default=timezone.now, compare=False)

    @classmethod
    def from_settings(cls, settings: Any) -> "SessionConfig":
        return cls(
            cookie_name=getattr(settings, "AUTH_SESSION_COOKIE_NAME", "session_id"),
            duration=timedelta(days=getattr(settings, "AUTH_SESSION_DURATION_DAYS", 30)),
            refresh_threshold=timedelta(days=getattr(settings, "AUTH_SESSION_REFRESH_THRESHOLD_DAYS", 15)),
            secure=bool(getattr(settings, "AUTH_SESSION_COOKIE_SECURE", True)),
            public_paths=tuple(getattr(settings, "AUTH_SESSION_PUBLIC_PATHS", ())),
            public_prefixes=tuple(getattr(settings, "AUTH_SESSION_PUBLIC_PREFIXES", ())),
            protected_prefixes=tuple(getattr(settings, "AUTH_SESSION_PROTECTED_PREFIXES", ("/api/",))),
            login_url=getattr(settings, "LOGIN_URL", "/login/"),
        )

    def is_protected(self, path: str) -> bool:
        if path in self.public_paths:
            return False
        if any(path.startswith(p) for p in self.public_prefixes):
            return False
        return any(path.startswith(p) for p in self.protected_prefixes)


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


class SessionManager:
    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()

    def now(self) -> datetime:
        return self.config.clock()

    def issue(self, user_id) -> Session:
        now = self.now()
        session = Session.objects.create(
            token=generate_token(),
            user_id=user_id,
            expires_at=now + self.config.duration,
            created_at=now,
        )
        logger.info("Issued session for user=%s expires_at=%s", user_id, session.expires_at.isoformat())
        return session

    def validate(self, token: Optional[str]):
        """Return (session, user) for a live session, else None.

        A session whose user is gone is deleted on the spot.
        """
        if not token:
            return None
        session = Session.objects.filter(token=token, expires_at__gt=self.now()).first()
        if session is None:
            return None

        user = get_user_model().objects.filter(pk=session.user_id).first()
        if user is None:
            logger.warning("Deleting orphaned session of missing user=%s", session.user_id)
            Session.objects.filter(token=session.token).delete()
            return None
        return session, user

    def refresh(self, session: Session) -> bool:
        """Slide expiry forward once fewer than refresh_threshold days remain."""
        now = self.now()
        days_until_expiry = (session.expires_at - now) / timedelta(days=1)
        if days_until_expiry > self.config.refresh_threshold / timedelta(days=1):
            return False

        new_expiry = now + self.config.duration
        Session.objects.filter(token=session.token).update(expires_at=new_expiry)
        session.expires_at = new_expiry
        logger.info("Refreshed session for user=%s expires_at=%s", session.user_id, new_expiry.isoformat())
        return True

    def destroy(self, token: Optional[str]) -> bool:
        if not token:
            return False
        deleted, _ = Session.objects.filter(token=token).delete()
        return deleted > 0

    def destroy_all(self, user_id) -> int:
        deleted, _ = Session.objects.filter(user_id=user_id).delete()
        logger.info("Destroyed %s session(s) for user=%s", deleted, user_id)
        return deleted

    def purge_expired(self) -> int:
        deleted, _ = Session.objects.filter(expires_at__lte=self.now()).delete()
        return deleted

    # --- cookie helpers ---

    def set_cookie(self, response, session: Session) -> None:
        response.set_cookie(
            key=self.config.cookie_name,
            value=session.token,
            expires=session.expires_at,
            httponly=True,
            secure=self.config.secure,
            samesite="Lax",
            path="/",
        )

    def clear_cookie(self, response) -> None:
        response.delete_cookie(self.config.cookie_name, path="/", samesite="Lax")

    def token_from_request(self, request) -> Optional[str]:
        return request.COOKIES.get(self.config.cookie_name)


def get_session_manager() -> SessionManager:
    """Manager configured from the current Django settings."""
    from django.conf import settings

    return SessionManager(SessionConfig.from_settings(settings))
