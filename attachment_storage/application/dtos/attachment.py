"""DTOs for attachment use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime

from attachment_storage.shared.enums import StorageBackend


def _check_locator(
    storage_backend: StorageBackend,
    physical_path: str | None,
    remote_object_id: str | None,
) -> None:
    """Exactly one locator is set and it matches the backend tag."""
    if storage_backend == StorageBackend.LOCAL:
        if not physical_path or remote_object_id is not None:
            raise ValueError(
                "Local attachments need physical_path and no remote_object_id"
            )
    elif storage_backend == StorageBackend.REMOTE:
        if not remote_object_id or physical_path is not None:
            raise ValueError(
                "Remote attachments need remote_object_id and no physical_path"
            )
    else:
        raise ValueError(f"Unknown storage backend: {storage_backend!r}")


@dataclass(frozen=True)
class StoredObject:
    """Result of a backend write: backend locator plus optional public reference."""

    locator: str
    public_ref: str | None = None


@dataclass(frozen=True)
class AttachmentCreate:
    """Input for creating an attachment record (write-model). Router builds this; repo persists and returns AttachmentRecord."""

    parent_id: str
    display_name: str
    created_at: datetime
    origin: str
    storage_backend: StorageBackend
    physical_path: str | None
    remote_object_id: str | None
    relative_ref: str | None
    content_type: str | None = None
    size: int | None = None
    active: bool = True

    def __post_init__(self) -> None:
        _check_locator(self.storage_backend, self.physical_path, self.remote_object_id)


@dataclass(frozen=True)
class AttachmentRecord:
    """Attachment read-model (result of save, find_by_id, find_by_parent, set_active)."""

    id: str
    parent_id: str
    display_name: str
    created_at: datetime
    origin: str
    storage_backend: StorageBackend
    physical_path: str | None
    remote_object_id: str | None
    relative_ref: str | None
    content_type: str | None = None
    size: int | None = None
    active: bool = True

    def __post_init__(self) -> None:
        _check_locator(self.storage_backend, self.physical_path, self.remote_object_id)

    @property
    def locator(self) -> str:
        """Backend-specific locator selected by the storage_backend tag."""
        if self.storage_backend == StorageBackend.REMOTE:
            return self.remote_object_id  # type: ignore[return-value]
        return self.physical_path  # type: ignore[return-value]


@dataclass(frozen=True)
class CredentialStatus:
    """Remote credential state as exposed upward (tokens themselves are never exposed)."""

    present: bool
    valid: bool
    refresh_token_present: bool
    expires_at: datetime | None


@dataclass(frozen=True)
class RemoteFile:
    """Entry of a remote listing."""

    id: str
    name: str
