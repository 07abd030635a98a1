"""Mutex-guarded token holder with single-flight refresh.

:class:`TokenStore` owns the one piece of state that concurrent calls on
a client share: the current :class:`~spotify_web_api.models.Token`.

* Reads copy the (immutable) token out under a lock, so a reader never
  observes a half-replaced credential set.
* Replacement is atomic and visible to every later reader.
* At most one refresh is in flight per store. Callers that detect expiry
  while a refresh is running wait for it and reuse its outcome, whether
  that is the new token or the failure, instead of sending a second
  refresh request. Threads wait on a :class:`threading.Lock`; asyncio
  tasks wait on an :class:`asyncio.Lock` created on first use.

A refresh commits only after the renewal callable returned a token. If it
raises, or the awaiting task is cancelled, the stored token is untouched
and the lock is released.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from spotify_web_api.exceptions import AuthenticationRequiredError, SpotifyError
from spotify_web_api.models import Token

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Renewal = Callable[[Token], Token]
AsyncRenewal = Callable[[Token], Awaitable[Token]]
TokenCallback = Callable[[Token], None]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class TokenStore:
    """Holds the current token of one client.

    Args:
        clock: Source of "now" used for expiry checks.
        expiry_margin: Seconds subtracted from ``expires_at`` when
            checking expiry (clock-skew tolerance, default ``0``).
        on_token: Called with every newly stored token, e.g. to persist it.
    """

    def __init__(
        self,
        clock: Clock = utcnow,
        expiry_margin: float = 0.0,
        on_token: Optional[TokenCallback] = None,
    ) -> None:
        self._clock = clock
        self._margin = timedelta(seconds=expiry_margin)
        self._on_token = on_token
        self._token: Optional[Token] = None
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._async_refresh_lock: Optional[asyncio.Lock] = None
        # Bumped once per settled refresh; waiters compare it to detect
        # that someone else refreshed while they were blocked.
        self._generation = 0
        self._last_failure: Optional[SpotifyError] = None

    @property
    def clock(self) -> Clock:
        return self._clock

    def get(self) -> Optional[Token]:
        """Return the current token, or ``None`` if none was ever stored."""
        with self._lock:
            return self._token

    def require(self) -> Token:
        """Return the current token.

        Raises:
            AuthenticationRequiredError: If no token has been obtained yet.
        """
        token = self.get()
        if token is None:
            raise AuthenticationRequiredError(
                "No access token available; request a token first"
            )
        return token

    def replace(self, token: Token) -> None:
        """Atomically store *token* and notify the ``on_token`` callback."""
        with self._lock:
            self._token = token
        logger.debug("Stored access token (expires_at=%s)", token.expires_at)
        if self._on_token is not None:
            self._on_token(token)

    def clear(self) -> None:
        with self._lock:
            self._token = None

    def is_expired(self, token: Token) -> bool:
        return token.is_expired(self._clock(), self._margin)

    # ------------------------------------------------------------------ #
    # Blocking refresh
    # ------------------------------------------------------------------ #

    def ensure_fresh(self, renew: Renewal) -> Token:
        """Return a non-expired token, renewing it through *renew* if needed.

        Raises:
            AuthenticationRequiredError: If no token was ever stored.
            SpotifyError: Whatever *renew* raised, for this caller and for
                every caller that waited on the same refresh.
        """
        token = self.require()
        if not self.is_expired(token):
            return token
        return self._refresh(renew, force=False)

    def refresh(self, renew: Renewal) -> Token:
        """Renew the token unconditionally (still single-flight)."""
        self.require()
        return self._refresh(renew, force=True)

    def _refresh(self, renew: Renewal, force: bool) -> Token:
        generation = self._generation
        with self._refresh_lock:
            if self._generation != generation:
                return self._settled_outcome()
            current = self.require()
            if not force and not self.is_expired(current):
                return current
            try:
                token = renew(current)
            except SpotifyError as exc:
                self._settle(exc)
                raise
            self.replace(token)
            self._settle(None)
            return token

    # ------------------------------------------------------------------ #
    # Async refresh
    # ------------------------------------------------------------------ #

    async def aensure_fresh(self, renew: AsyncRenewal) -> Token:
        """Async counterpart of :meth:`ensure_fresh`."""
        token = self.require()
        if not self.is_expired(token):
            return token
        return await self._arefresh(renew, force=False)

    async def arefresh(self, renew: AsyncRenewal) -> Token:
        """Async counterpart of :meth:`refresh`."""
        self.require()
        return await self._arefresh(renew, force=True)

    async def _arefresh(self, renew: AsyncRenewal, force: bool) -> Token:
        if self._async_refresh_lock is None:
            self._async_refresh_lock = asyncio.Lock()
        generation = self._generation
        async with self._async_refresh_lock:
            if self._generation != generation:
                return self._settled_outcome()
            current = self.require()
            if not force and not self.is_expired(current):
                return current
            try:
                token = await renew(current)
            except SpotifyError as exc:
                self._settle(exc)
                raise
            self.replace(token)
            self._settle(None)
            return token

    # ------------------------------------------------------------------ #

    def _settle(self, failure: Optional[SpotifyError]) -> None:
        self._last_failure = failure
        self._generation += 1

    def _settled_outcome(self) -> Token:
        if self._last_failure is not None:
            raise self._last_failure
        return self.require()
