"""Application DTOs (no ORM dependency)."""

from attachment_storage.application.dtos.attachment import (
    AttachmentCreate,
    AttachmentRecord,
    CredentialStatus,
    RemoteFile,
    StoredObject,
)

__all__ = [
    "AttachmentCreate",
    "AttachmentRecord",
    "CredentialStatus",
    "RemoteFile",
    "StoredObject",
]
