"""Google OAuth driver for Drive: authorization URL, code exchange, token refresh."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx

from attachment_storage.infrastructure.exceptions import (
    AuthorizationExchangeError,
    RefreshFailedError,
    RefreshRejectedError,
)
from attachment_storage.shared.telemetry.logging import get_logger
from attachment_storage.shared.utils.datetime import utc_now

logger = get_logger(__name__)

DRIVE_FILE_SCOPE = "https://www.googleapis.com/auth/drive.file"


@dataclass
class OAuthTokens:
    """Normalized OAuth token response."""

    access_token: str
    refresh_token: str | None
    token_type: str
    expires_in: int
    expires_at: datetime
    scope: str


def _error_reason(response: httpx.Response) -> str | None:
    """Return the OAuth 'error' field of a failed token response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error")
    return None


def _has_access_token(token_data: Any) -> bool:
    return isinstance(token_data, dict) and bool(token_data.get("access_token"))


class GoogleDriveOAuthDriver:
    """OAuth2 authorization-code flow against Google's token endpoint (offline access)."""

    PROVIDER_NAME: ClassVar[str] = "Google Drive"
    AUTHORIZATION_ENDPOINT: ClassVar[str] = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_ENDPOINT: ClassVar[str] = "https://oauth2.googleapis.com/token"
    # Token endpoint status that means the refresh token itself is bad (invalid_grant).
    REJECTED_REFRESH_STATUS: ClassVar[int] = 400
    _SENSITIVE_KEYS: ClassVar[frozenset[str]] = frozenset(
        {"access_token", "refresh_token", "id_token"}
    )

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: list[str] | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or [DRIVE_FILE_SCOPE]
        self._http_client = http_client
        self._timeout = timeout

    def build_authorization_url(self, state: str | None = None) -> str:
        """Build the consent URL; offline access + forced consent so a refresh token is issued."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
        }
        if state:
            params["state"] = state
        return f"{self.AUTHORIZATION_ENDPOINT}?{urlencode(params)}"

    async def _post_token(self, data: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.TOKEN_ENDPOINT, data=data)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(self.TOKEN_ENDPOINT, data=data)

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        """Exchange authorization code for tokens."""
        response = await self._post_token(
            {
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        if response.status_code != 200:
            reason = _error_reason(response)
            logger.error(
                "%s token exchange failed: status=%d error=%s",
                self.PROVIDER_NAME,
                response.status_code,
                reason,
            )
            raise AuthorizationExchangeError(response.status_code, reason)
        token_data = response.json()
        if not _has_access_token(token_data):
            logger.error("%s token exchange returned no access token", self.PROVIDER_NAME)
            raise AuthorizationExchangeError(response.status_code, "missing access_token")
        return self._normalize_token_response(token_data)

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        """Refresh access token.

        Raises:
            RefreshRejectedError: Token endpoint rejected the refresh token (HTTP 400).
            RefreshFailedError: Any other non-200 answer.
            httpx.HTTPError: Transport failure (left to the caller to classify).
        """
        response = await self._post_token(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )
        if response.status_code != 200:
            reason = _error_reason(response)
            logger.error(
                "%s token refresh failed: status=%d error=%s",
                self.PROVIDER_NAME,
                response.status_code,
                reason,
            )
            if response.status_code == self.REJECTED_REFRESH_STATUS:
                raise RefreshRejectedError(response.status_code, reason)
            raise RefreshFailedError(
                f"token endpoint returned status {response.status_code}"
            )
        token_data = response.json()
        if not _has_access_token(token_data):
            logger.error("%s token refresh returned no access token", self.PROVIDER_NAME)
            raise RefreshFailedError("token response missing access_token")
        tokens = self._normalize_token_response(token_data)
        if not tokens.refresh_token:
            tokens.refresh_token = refresh_token
        return tokens

    def _normalize_token_response(self, token_data: dict[str, Any]) -> OAuthTokens:
        """Normalize provider response to OAuthTokens."""
        expires_in = int(token_data.get("expires_in", 3600))
        extra = sorted(k for k in token_data if k not in self._SENSITIVE_KEYS)
        logger.debug("%s token response fields: %s", self.PROVIDER_NAME, extra)
        return OAuthTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            token_type=token_data.get("token_type", "Bearer"),
            expires_in=expires_in,
            expires_at=utc_now() + timedelta(seconds=expires_in),
            scope=token_data.get("scope", " ".join(self.scopes)),
        )
