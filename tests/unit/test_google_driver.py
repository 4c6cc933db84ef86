"""Unit tests for GoogleDriveOAuthDriver against a mocked token endpoint (httpx.MockTransport)."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from attachment_storage.infrastructure.exceptions import (
    AuthorizationExchangeError,
    RefreshFailedError,
    RefreshRejectedError,
)
from attachment_storage.infrastructure.external.oauth.google_driver import (
    DRIVE_FILE_SCOPE,
    GoogleDriveOAuthDriver,
)


def make_driver(handler) -> tuple[GoogleDriveOAuthDriver, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    driver = GoogleDriveOAuthDriver(
        "client-id",
        "client-secret",
        "http://localhost:8081/callback",
        http_client=client,
    )
    return driver, seen


def form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def test_authorization_url_requests_offline_access() -> None:
    driver = GoogleDriveOAuthDriver("cid", "secret", "http://localhost:8081/callback")
    url = urlparse(driver.build_authorization_url(state="s1"))
    params = {k: v[0] for k, v in parse_qs(url.query).items()}
    assert url.netloc == "accounts.google.com"
    assert params["client_id"] == "cid"
    assert params["redirect_uri"] == "http://localhost:8081/callback"
    assert params["response_type"] == "code"
    assert params["access_type"] == "offline"
    assert params["prompt"] == "consent"
    assert params["scope"] == DRIVE_FILE_SCOPE
    assert params["state"] == "s1"


async def test_exchange_code_for_tokens() -> None:
    driver, seen = make_driver(
        lambda r: httpx.Response(
            200,
            json={
                "access_token": "at",
                "refresh_token": "rt",
                "expires_in": 3599,
                "token_type": "Bearer",
            },
        )
    )
    tokens = await driver.exchange_code_for_tokens("the-code")
    assert tokens.access_token == "at"
    assert tokens.refresh_token == "rt"
    assert tokens.expires_in == 3599
    sent = form(seen[0])
    assert str(seen[0].url) == GoogleDriveOAuthDriver.TOKEN_ENDPOINT
    assert sent["grant_type"] == "authorization_code"
    assert sent["code"] == "the-code"
    assert sent["client_secret"] == "client-secret"


async def test_exchange_failure_raises() -> None:
    driver, _ = make_driver(lambda r: httpx.Response(401, json={"error": "invalid_client"}))
    with pytest.raises(AuthorizationExchangeError) as exc_info:
        await driver.exchange_code_for_tokens("bad")
    assert exc_info.value.details["status_code"] == 401
    assert exc_info.value.details["reason"] == "invalid_client"


async def test_refresh_keeps_refresh_token_when_not_returned() -> None:
    driver, seen = make_driver(
        lambda r: httpx.Response(200, json={"access_token": "new-at", "expires_in": 3600})
    )
    tokens = await driver.refresh_access_token("rt-1")
    assert tokens.access_token == "new-at"
    assert tokens.refresh_token == "rt-1"
    sent = form(seen[0])
    assert sent["grant_type"] == "refresh_token"
    assert sent["refresh_token"] == "rt-1"


async def test_refresh_rejected_on_400() -> None:
    driver, _ = make_driver(lambda r: httpx.Response(400, json={"error": "invalid_grant"}))
    with pytest.raises(RefreshRejectedError) as exc_info:
        await driver.refresh_access_token("revoked")
    assert exc_info.value.error_code == "REFRESH_REJECTED"
    assert exc_info.value.details["reason"] == "invalid_grant"


@pytest.mark.parametrize("status", [401, 500, 503])
async def test_refresh_other_status_is_transient_failure(status: int) -> None:
    driver, _ = make_driver(lambda r: httpx.Response(status, text="unavailable"))
    with pytest.raises(RefreshFailedError):
        await driver.refresh_access_token("rt")


async def test_refresh_transport_error_propagates() -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    driver, _ = make_driver(boom)
    with pytest.raises(httpx.ConnectError):
        await driver.refresh_access_token("rt")


async def test_exchange_without_access_token_raises() -> None:
    driver, _ = make_driver(lambda r: httpx.Response(200, json={"token_type": "Bearer"}))
    with pytest.raises(AuthorizationExchangeError) as exc_info:
        await driver.exchange_code_for_tokens("code")
    assert exc_info.value.details["reason"] == "missing access_token"


async def test_refresh_without_access_token_is_refresh_failure() -> None:
    driver, _ = make_driver(lambda r: httpx.Response(200, json={"expires_in": 3600}))
    with pytest.raises(RefreshFailedError):
        await driver.refresh_access_token("rt")
