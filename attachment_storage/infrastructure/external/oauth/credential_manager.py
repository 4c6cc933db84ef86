"""Remote storage credential lifecycle: OAuth2 tokens, expiry and on-demand refresh.

Token state is process-wide and in memory only. Callers that need tokens to
survive a restart persist them externally and call set_tokens() on startup.

The (access, refresh, expiry) triple lives in one immutable CredentialState
that is swapped under a threading.Lock, so readers in any thread (including
asyncio.to_thread workers building Drive services) never observe a new access
token paired with an old expiry.

Concurrent refreshes are deduplicated per event loop: ensure_valid() holds an
asyncio.Lock owned by the running loop while refreshing and re-checks validity
after acquiring it, so tasks that queued behind a successful refresh reuse its
result instead of calling the token endpoint again. Callers on different
loops (threads, successive asyncio.run calls) may refresh redundantly; the
compare-and-swap in _apply_refresh keeps that harmless.
"""

from __future__ import annotations

import asyncio
import threading
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol

from attachment_storage.application.dtos.attachment import CredentialStatus
from attachment_storage.infrastructure.exceptions import (
    NoCredentialError,
    RefreshFailedError,
    RefreshRejectedError,
)
from attachment_storage.shared.telemetry.logging import get_logger
from attachment_storage.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from attachment_storage.infrastructure.external.oauth.google_driver import (
        OAuthTokens,
    )

logger = get_logger(__name__)

DEFAULT_LEASE = timedelta(minutes=50)


class IOAuthDriver(Protocol):
    """Token endpoint operations the manager relies on (see GoogleDriveOAuthDriver)."""

    def build_authorization_url(self, state: str | None = None) -> str:
        ...

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        ...

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        ...


@dataclass(frozen=True)
class CredentialState:
    """Snapshot of the token triple. Replaced as a whole, never mutated."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None


_EMPTY = CredentialState()


def _mark(value: str | None) -> str:
    return "SET" if value else "NULL"


class CredentialLifecycleManager:
    """Owns the remote backend's OAuth2 tokens and keeps the access token fresh."""

    def __init__(
        self,
        driver: IOAuthDriver | None = None,
        *,
        lease: timedelta = DEFAULT_LEASE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._driver = driver
        self._lease = lease
        self._clock = clock
        self._state = _EMPTY
        self._state_lock = threading.Lock()
        self._refresh_locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, asyncio.Lock
        ] = weakref.WeakKeyDictionary()

    def _refresh_lock(self) -> asyncio.Lock:
        """Return the refresh lock of the running event loop."""
        loop = asyncio.get_running_loop()
        with self._state_lock:
            lock = self._refresh_locks.get(loop)
            if lock is None:
                lock = self._refresh_locks[loop] = asyncio.Lock()
            return lock

    def snapshot(self) -> CredentialState:
        """Return the current token triple (consistent, never torn)."""
        with self._state_lock:
            return self._state

    def set_tokens(self, access_token: str | None, refresh_token: str | None) -> None:
        """Replace both tokens; expiry becomes now + lease. No merge with prior state."""
        expires_at = self._clock() + self._lease
        with self._state_lock:
            self._state = CredentialState(access_token, refresh_token, expires_at)
        logger.info(
            "Remote storage tokens updated - access token: %s, refresh token: %s, expires at: %s",
            _mark(access_token),
            _mark(refresh_token),
            expires_at.isoformat(),
        )

    def clear(self) -> None:
        """Wipe all token state (logout, disconnect, rejected refresh token)."""
        with self._state_lock:
            self._state = _EMPTY
        logger.info("Remote storage tokens cleared")

    def has_valid_token(self) -> bool:
        """True iff an access token is held and has not reached its expiry."""
        state = self.snapshot()
        valid = bool(
            state.access_token
            and state.expires_at is not None
            and self._clock() < state.expires_at
        )
        logger.debug(
            "Token validation - access token: %s, valid: %s",
            _mark(state.access_token),
            valid,
        )
        return valid

    def status(self) -> CredentialStatus:
        """Token presence/validity for status checks; never exposes token values."""
        state = self.snapshot()
        return CredentialStatus(
            present=bool(state.access_token),
            valid=self.has_valid_token(),
            refresh_token_present=bool(state.refresh_token),
            expires_at=state.expires_at,
        )

    async def ensure_valid(self) -> None:
        """Make sure a valid access token is held, refreshing it if needed.

        Raises:
            NoCredentialError: No valid access token and no refresh token.
            RefreshRejectedError: Refresh token rejected; all tokens were cleared.
            RefreshFailedError: Transient refresh failure; tokens untouched.
        """
        if self.has_valid_token():
            return
        async with self._refresh_lock():
            if self.has_valid_token():
                return
            state = self.snapshot()
            if not state.refresh_token:
                logger.warning(
                    "No valid tokens available and no refresh token to refresh with"
                )
                raise NoCredentialError()
            if self._driver is None:
                raise RefreshFailedError("no token endpoint configured")
            logger.info("Access token expired or missing, attempting to refresh")
            try:
                tokens = await self._driver.refresh_access_token(state.refresh_token)
            except RefreshRejectedError:
                logger.error(
                    "Refresh token is invalid or expired; clearing tokens, re-authorization required"
                )
                self.clear()
                raise
            except RefreshFailedError:
                raise
            except Exception as e:
                logger.error("Error refreshing access token: %s", e, exc_info=True)
                raise RefreshFailedError(str(e) or e.__class__.__name__) from e
            self._apply_refresh(state, tokens)

    def _apply_refresh(self, used: CredentialState, tokens: OAuthTokens) -> None:
        """Store refreshed tokens unless set_tokens/clear replaced the state meanwhile."""
        expires_at = self._clock() + min(self._lease, timedelta(seconds=tokens.expires_in))
        new_state = CredentialState(
            tokens.access_token,
            tokens.refresh_token or used.refresh_token,
            expires_at,
        )
        with self._state_lock:
            if self._state is not used:
                logger.info("Credential state changed during refresh; keeping newer state")
                return
            self._state = new_state
        logger.info("Access token refreshed successfully. New expiration: %s", expires_at.isoformat())

    # Authorization-code flow (consent screen -> callback -> set_tokens).

    def authorization_url(self, state: str | None = None) -> str:
        """Return the consent URL the account owner must visit."""
        return self._require_driver().build_authorization_url(state)

    async def complete_authorization(self, code: str) -> CredentialStatus:
        """Exchange the callback code for tokens and store them via set_tokens()."""
        tokens = await self._require_driver().exchange_code_for_tokens(code)
        logger.info("Successfully exchanged authorization code for tokens")
        self.set_tokens(tokens.access_token, tokens.refresh_token)
        return self.status()

    def _require_driver(self) -> IOAuthDriver:
        if self._driver is None:
            raise RuntimeError("OAuth driver not configured (remote storage disabled?)")
        return self._driver
