"""
Shared token state and refresh coordination.

A :class:`SessionManager` is shared by every thread using one client. The
token, storage URL and expiry live together in an immutable
:class:`SessionState`; refreshing swaps the whole object under a lock, so a
reader always sees the three fields from the same authentication.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional, Protocol

from .auth import AuthResult
from .config import DEFAULT_REFRESH_MARGIN, RefreshPolicy
from .exceptions import ConfigError, CoordinationError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Authorization(NamedTuple):
    """Token and storage URL to use for one request."""

    token: str
    storage_url: str


class Auth(Protocol):
    """Anything that can hand out a usable token and storage URL."""

    def acquire(self) -> Authorization:
        ...


class Authenticator(Protocol):
    def authenticate(self) -> AuthResult:
        ...


@dataclass(frozen=True)
class SessionState:
    token: Optional[str] = None
    storage_url: Optional[str] = None
    expires: Optional[datetime] = None

    @classmethod
    def from_result(cls, result: AuthResult) -> "SessionState":
        return cls(token=result.token, storage_url=result.storage_url, expires=result.expires)

    @property
    def is_ready(self) -> bool:
        return self.token is not None and self.storage_url is not None and self.expires is not None

    def is_fresh(self, now: datetime, margin: timedelta) -> bool:
        """True when ready and expiring more than ``margin`` after ``now``."""
        return self.is_ready and now < self.expires - margin

    def authorization(self) -> Authorization:
        return Authorization(self.token, self.storage_url)


EMPTY = SessionState()


class SessionManager:
    """
    Hands out a valid token, authenticating only when necessary.

    With :attr:`RefreshPolicy.WAIT` a caller that finds the token stale
    queues on the lock and re-checks once it holds it, so concurrent
    callers share a single authentication. With
    :attr:`RefreshPolicy.FAIL_OPEN` a caller that cannot take the lock
    immediately carries on with whatever state is already published.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        policy: RefreshPolicy = RefreshPolicy.WAIT,
        lock_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if lock_timeout is not None and lock_timeout < 0:
            raise ConfigError(f"lock_timeout must be None or non-negative, got {lock_timeout}")
        self._authenticator = authenticator
        self.refresh_margin = refresh_margin
        self.policy = RefreshPolicy(policy)
        self.lock_timeout = lock_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._state = EMPTY

    @property
    def state(self) -> SessionState:
        return self._state

    def acquire(self) -> Authorization:
        """
        Return a token and storage URL, refreshing the session if needed.

        Raises:
            AuthError: If authentication fails; the previous state is kept.
            TransportError: If the identity service cannot be reached.
            CoordinationError: If the lock cannot be taken when required, or
                the fail-open path finds no published token.
        """
        state = self._state
        if state.is_fresh(self._clock(), self.refresh_margin):
            return state.authorization()

        if self.policy is RefreshPolicy.FAIL_OPEN:
            return self._acquire_fail_open()
        return self._acquire_waiting()

    def invalidate(self) -> None:
        """Forget the current token so the next acquire() re-authenticates."""
        with self._lock:
            self._state = EMPTY
        logger.debug("Session invalidated")

    def _acquire_waiting(self) -> Authorization:
        timeout = -1 if self.lock_timeout is None else self.lock_timeout
        if not self._lock.acquire(timeout=timeout):
            logger.error("Timed out waiting for the session lock")
            raise CoordinationError(f"Timed out after {self.lock_timeout}s waiting for the session lock")
        try:
            return self._refresh_locked()
        finally:
            self._lock.release()

    def _acquire_fail_open(self) -> Authorization:
        if self._lock.acquire(blocking=False):
            try:
                return self._refresh_locked()
            finally:
                self._lock.release()

        # Another thread is refreshing; use whatever is published right now.
        logger.debug("Session refresh already in progress; using current state")
        state = self._state
        if not state.is_ready:
            logger.error("No current access token found")
            raise CoordinationError("No current access token found")
        return state.authorization()

    def _refresh_locked(self) -> Authorization:
        state = self._state
        if state.is_fresh(self._clock(), self.refresh_margin):
            return state.authorization()

        logger.debug("Token missing or expiring within %s; authenticating", self.refresh_margin)
        state = SessionState.from_result(self._authenticator.authenticate())
        self._state = state
        return state.authorization()


class StaticAuth:
    """Auth backed by a pre-issued token, e.g. from another identity system."""

    def __init__(self, token: str, storage_url: str) -> None:
        self._authorization = Authorization(token, storage_url)

    def acquire(self) -> Authorization:
        return self._authorization
