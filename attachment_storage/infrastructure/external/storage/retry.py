"""Retry with exponential backoff for remote storage calls.

One policy for every remote operation: a bounded number of attempts, a
backoff of base ** attempt seconds between them, and fail-fast on failures
that retrying cannot fix (bad request, unauthorized, forbidden, not found,
credential errors). Classification reads structured status codes from the
client exceptions, never their messages.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httplib2
import httpx
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from attachment_storage.infrastructure.exceptions import (
    ConnectTimeoutError,
    CredentialException,
    RemoteOperationExhaustedError,
)
from attachment_storage.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

NON_RETRYABLE_STATUS_CODES = frozenset({400, 401, 403, 404})

# IO-level failures worth another attempt (unless they carry a non-retryable status).
RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    HttpError,
    httpx.TransportError,
    httpx.HTTPStatusError,
    httplib2.HttpLib2Error,
    OSError,
    ConnectTimeoutError,
)

# Credential construction/security failures: never retried.
FAIL_FAST_EXCEPTIONS: tuple[type[BaseException], ...] = (
    GoogleAuthError,
    CredentialException,
)


def status_code_of(error: BaseException) -> int | None:
    """Return the HTTP status carried by a client exception, if any."""
    if isinstance(error, HttpError):
        status = getattr(error, "status_code", None)
        if status is None and getattr(error, "resp", None) is not None:
            status = getattr(error.resp, "status", None)
        try:
            return int(status) if status is not None else None
        except (TypeError, ValueError):
            return None
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def is_non_retryable(error: BaseException) -> bool:
    """True for failures a retry cannot fix (400/401/403/404, credential errors)."""
    if isinstance(error, FAIL_FAST_EXCEPTIONS):
        return True
    return status_code_of(error) in NON_RETRYABLE_STATUS_CODES


def is_retryable(error: BaseException) -> bool:
    """True for transient IO-level failures."""
    return isinstance(error, RETRYABLE_EXCEPTIONS) and not is_non_retryable(error)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff schedule (defaults: 3 attempts, waits of 2s then 4s)."""

    max_attempts: int = 3
    backoff_base: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return float(self.backoff_base**attempt)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    name: str,
) -> T:
    """Run operation under policy.

    Non-retryable and unclassified failures propagate unmodified after the
    attempt that raised them. When every attempt fails with a retryable
    error, RemoteOperationExhaustedError is raised from the last one.
    """
    last_error: BaseException | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            logger.info("Remote %s: attempt %d/%d", name, attempt, policy.max_attempts)
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                if is_non_retryable(e):
                    logger.error(
                        "Non-retryable error during remote %s (status=%s): %s",
                        name,
                        status_code_of(e),
                        e,
                    )
                raise
            last_error = e
            logger.warning(
                "Attempt %d/%d of remote %s failed: %s: %s",
                attempt,
                policy.max_attempts,
                name,
                e.__class__.__name__,
                e,
            )
            if e.__cause__ is not None:
                logger.warning(
                    "  Cause: %s - %s", e.__cause__.__class__.__name__, e.__cause__
                )
            if attempt < policy.max_attempts:
                wait = policy.delay_after(attempt)
                logger.info("Waiting %.1f s before retrying remote %s", wait, name)
                await policy.sleep(wait)
    logger.error("All %d attempts of remote %s failed", policy.max_attempts, name)
    raise RemoteOperationExhaustedError(name, policy.max_attempts, last_error) from last_error
