"""Signed-in user session with a TTL-bound profile cache."""

import logging
from datetime import datetime, timedelta
from typing import Callable

from taskview.dates import utc_now
from taskview.errors import ConfigError, SessionError
from taskview.logging import log_event, summarize_text
from taskview.models import UserProfile

DEFAULT_SESSION_TTL_SECONDS = 5 * 60

SessionListener = Callable[[str | None], None]


class SessionService:
    """Current user identity plus a cached profile.

    Created at application start and disposed at sign-out. Listeners are
    told about identity changes only, never about profile refreshes.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise ConfigError("ttl_seconds must be a positive integer")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or utc_now
        self._user_id: str | None = None
        self._profile: UserProfile | None = None
        self._last_fetch: datetime | None = None
        self._listeners: list[SessionListener] = []

    @property
    def current_user_id(self) -> str | None:
        return self._user_id

    def require_user_id(self) -> str:
        """Return the signed-in user id or raise if signed out."""
        if self._user_id is None:
            raise SessionError("No user signed in")
        return self._user_id

    def sign_in(self, user_id: str, profile: UserProfile | None = None) -> None:
        """Bind the session to a user, optionally with a fetched profile."""
        if not user_id:
            raise SessionError("User id must be a non-empty string")
        previous = self._user_id
        self._user_id = user_id
        if profile is not None:
            self.refresh_profile(profile)
        elif previous != user_id:
            self._profile = None
            self._last_fetch = None
        if previous != user_id:
            self._notify(user_id)

    def refresh_profile(self, profile: UserProfile) -> None:
        """Store a freshly fetched profile for the signed-in user."""
        user_id = self.require_user_id()
        if profile.id != user_id:
            raise SessionError(f"Profile {profile.id} does not belong to user {user_id}")
        self._profile = profile
        self._last_fetch = self._clock()

    def is_expired(self) -> bool:
        """True when signed out, never fetched, or older than the TTL."""
        if self._user_id is None or self._profile is None or self._last_fetch is None:
            return True
        return self._clock() - self._last_fetch > self._ttl

    def cached_profile(self) -> UserProfile | None:
        """Return the cached profile, or None if it must be fetched again."""
        if self.is_expired():
            return None
        return self._profile

    def sign_out(self) -> None:
        """Clear identity and cache, then notify listeners."""
        previous = self._user_id
        self._user_id = None
        self._profile = None
        self._last_fetch = None
        if previous is not None:
            self._notify(None)

    def subscribe(self, callback: SessionListener) -> Callable[[], None]:
        """Register an identity-change listener; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, user_id: str | None) -> None:
        log_event("session_changed", user_id=user_id, listeners=len(self._listeners))
        for callback in list(self._listeners):
            try:
                callback(user_id)
            except Exception as e:
                # One broken listener must not keep the others stale.
                log_event(
                    "session_listener_failed",
                    level=logging.ERROR,
                    error_type=type(e).__name__,
                    error=summarize_text(e),
                )
