"""Domain exceptions for the attachment storage service.

Defines domain-level exceptions that represent business rule violations
(missing parent entity, missing attachment, deletion policy rejection).
These exceptions are independent of infrastructure concerns; the
request-handling layer maps them to responses using message, error_code
and details.
"""

from typing import Any


class AttachmentStorageException(Exception):
    """Base exception for all attachment storage errors.

    All custom exceptions inherit from this class so callers can handle
    every failure of this package in one place.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. attachment_id, backend).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundException(AttachmentStorageException):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        error_code: str = "RESOURCE_NOT_FOUND",
    ) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'attachment', 'parent').
            resource_id: The ID that was not found.
            error_code: Machine-readable code for the concrete subclass.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            error_code,
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ParentNotFoundException(ResourceNotFoundException):
    """Raised when the owning business entity of a new attachment does not exist."""

    def __init__(self, parent_id: str) -> None:
        super().__init__("parent", str(parent_id), "PARENT_NOT_FOUND")


class AttachmentNotFoundException(ResourceNotFoundException):
    """Raised when no attachment record exists for the given id."""

    def __init__(self, attachment_id: str) -> None:
        super().__init__("attachment", str(attachment_id), "ATTACHMENT_NOT_FOUND")


class PermissionDeniedException(AttachmentStorageException):
    """Raised when the deletion policy rejects a removal. Distinct from not-found."""

    def __init__(self, attachment_id: str, requesting_origin: str) -> None:
        """Initialize with the attachment and the origin that was refused.

        Args:
            attachment_id: Attachment the caller tried to remove.
            requesting_origin: Actor class of the caller (e.g. 'correspondent').
        """
        super().__init__(
            f"Permission denied: {requesting_origin} may not delete attachment {attachment_id}",
            "PERMISSION_DENIED",
            {
                "attachment_id": str(attachment_id),
                "requesting_origin": requesting_origin,
            },
        )


class DatabaseNotConfiguredException(AttachmentStorageException):
    """Raised when the metadata store is used without DATABASE_URL."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="DATABASE_NOT_CONFIGURED",
        )


class BackendUnavailableError(AttachmentStorageException):
    """Requested storage backend is not configured or not enabled. No fallback is attempted."""

    def __init__(
        self,
        backend: str,
        reason: str | None = None,
        error_code: str = "BACKEND_UNAVAILABLE",
    ) -> None:
        super().__init__(
            f"Storage backend unavailable: {backend} ({reason or 'not configured'})",
            error_code,
            {"backend": backend, "reason": reason or "not configured"},
        )


class RemoteUnavailableError(BackendUnavailableError):
    """Remote backend is configured but not usable right now (no token, probe failed)."""

    def __init__(self, reason: str) -> None:
        super().__init__("remote", reason, "REMOTE_UNAVAILABLE")
