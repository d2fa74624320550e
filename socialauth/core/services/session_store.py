"""
In-memory store of ``SocialAuthSession`` objects.

Provider instances hold live protocol state (request tokens, nonces, access
tokens) and are not serializable, so sessions are kept in process memory
and the browser only carries an opaque key in its signed session cookie.

Note:
    Data is lost on application restart.
    Not suitable for multi-process or multi-instance deployments.
"""

import secrets
from datetime import datetime, timedelta, timezone

from socialauth.core.config import session_logger, settings
from socialauth.core.services.socialauth import SocialAuthSession


__all__ = ["SessionStore", "session_store"]


class SessionStore:
    """
    Dictionary-backed session store with a sliding expiry.

    Each access to a session pushes its expiry ``ttl_seconds`` further.
    Expired sessions are dropped on access, and all of them at most every
    ``purge_interval_seconds`` when a new session is created.
    """

    def __init__(
        self, ttl_seconds: int | None = None, purge_interval_seconds: int = 60
    ):
        self.ttl_seconds = ttl_seconds or settings.SOCIALAUTH_SESSION_TTL_SECONDS
        self.purge_interval = timedelta(seconds=purge_interval_seconds)
        self._store: dict[str, tuple[SocialAuthSession, datetime]] = {}
        self._next_purge_at = datetime.now(timezone.utc) + self.purge_interval

    @staticmethod
    def new_key() -> str:
        return secrets.token_urlsafe(32)

    def _expiry(self) -> datetime:
        return datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)

    def get(self, key: str) -> SocialAuthSession | None:
        """
        Return the live session for ``key``, refreshing its expiry.

        Returns:
            SocialAuthSession | None: None if unknown or expired.
        """
        entry = self._store.get(key)
        if entry is None:
            return None

        session, expires_at = entry
        if expires_at <= datetime.now(timezone.utc):
            del self._store[key]
            session_logger.info("Social auth session expired")
            return None

        self._store[key] = (session, self._expiry())
        return session

    def get_or_create(self, key: str) -> SocialAuthSession:
        """Return the session for ``key``, creating an empty one if needed."""
        session = self.get(key)
        if session is None:
            self._purge_if_due()
            session = SocialAuthSession()
            self._store[key] = (session, self._expiry())
        return session

    def discard(self, key: str) -> None:
        self._store.pop(key, None)

    def _purge_if_due(self) -> None:
        now = datetime.now(timezone.utc)
        if now >= self._next_purge_at:
            self._next_purge_at = now + self.purge_interval
            self.purge_expired()

    def purge_expired(self) -> int:
        """
        Drop every expired session.

        Returns:
            int: Number of sessions removed.
        """
        now = datetime.now(timezone.utc)
        expired = [key for key, (_, expires_at) in self._store.items() if expires_at <= now]
        for key in expired:
            del self._store[key]
        if expired:
            session_logger.info(f"Purged {len(expired)} expired social auth sessions")
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)


session_store = SessionStore()
