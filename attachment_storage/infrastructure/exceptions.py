"""Infrastructure exceptions for storage backends and remote credentials.

All extend AttachmentStorageException so the request-handling layer can map
them to responses consistently. Credential errors form their own branch so
the retry wrapper can fail fast on all of them.
"""

from attachment_storage.domain.exceptions import AttachmentStorageException


class StorageException(AttachmentStorageException):
    """Base exception for storage operations."""


class StorageNotFoundError(StorageException):
    """File or object not found in storage."""

    def __init__(self, locator: str) -> None:
        super().__init__(
            f"File not found: {locator}",
            "STORAGE_NOT_FOUND",
            {"locator": locator},
        )


class StorageUploadError(StorageException):
    """Writing a binary failed."""

    def __init__(self, locator: str, reason: str) -> None:
        super().__init__(
            f"Failed to store file: {locator}",
            "STORAGE_UPLOAD_ERROR",
            {"locator": locator, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """File deletion failed."""

    def __init__(self, locator: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete file: {locator}",
            "STORAGE_DELETE_ERROR",
            {"locator": locator, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Locator resolves outside the storage root."""

    def __init__(self, locator: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {locator}",
            "STORAGE_PERMISSION_ERROR",
            {"locator": locator, "operation": operation},
        )


class ConnectTimeoutError(StorageException):
    """Building a remote connection exceeded the bounded setup time."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Timeout while creating remote connection after {timeout_seconds:g} seconds",
            "CONNECT_TIMEOUT",
            {"timeout_seconds": timeout_seconds},
        )


class RemoteOperationExhaustedError(StorageException):
    """All retry attempts of a remote operation failed. Wraps the last error."""

    def __init__(
        self, operation: str, attempts: int, last_error: BaseException | None
    ) -> None:
        super().__init__(
            f"Remote {operation} failed after {attempts} attempts",
            "REMOTE_OPERATION_EXHAUSTED",
            {
                "operation": operation,
                "attempts": attempts,
                "last_error": repr(last_error) if last_error else None,
            },
        )
        self.last_error = last_error


class CredentialException(AttachmentStorageException):
    """Base exception for remote credential state."""


class NoCredentialError(CredentialException):
    """No valid access token and no refresh token to obtain one."""

    def __init__(self) -> None:
        super().__init__(
            "No valid tokens available. Authorize the remote storage account first.",
            "NO_CREDENTIAL",
        )


class RefreshRejectedError(CredentialException):
    """Token endpoint rejected the refresh token. Permanent; tokens are cleared."""

    def __init__(self, status_code: int, reason: str | None = None) -> None:
        super().__init__(
            "Refresh token is invalid. Authorize the remote storage account again.",
            "REFRESH_REJECTED",
            {"status_code": status_code, "reason": reason},
        )


class RefreshFailedError(CredentialException):
    """Refresh failed for a transient reason. Tokens are left untouched."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Failed to refresh access token: {reason}",
            "REFRESH_FAILED",
            {"reason": reason},
        )


class AuthorizationExchangeError(CredentialException):
    """Authorization code could not be exchanged for tokens."""

    def __init__(self, status_code: int | None, reason: str | None = None) -> None:
        super().__init__(
            "Token exchange failed",
            "AUTHORIZATION_EXCHANGE_FAILED",
            {"status_code": status_code, "reason": reason},
        )
