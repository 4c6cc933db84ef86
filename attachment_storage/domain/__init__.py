"""Domain layer: deletion policy and exceptions.

No dependencies on infrastructure. Used by application and infrastructure
layers.
"""

from attachment_storage.domain.deletion_policy import CORRESPONDENT_ORIGIN, can_delete
from attachment_storage.domain.exceptions import (
    AttachmentNotFoundException,
    AttachmentStorageException,
    BackendUnavailableError,
    DatabaseNotConfiguredException,
    ParentNotFoundException,
    PermissionDeniedException,
    RemoteUnavailableError,
    ResourceNotFoundException,
)

__all__ = [
    "CORRESPONDENT_ORIGIN",
    "can_delete",
    "AttachmentNotFoundException",
    "AttachmentStorageException",
    "BackendUnavailableError",
    "DatabaseNotConfiguredException",
    "ParentNotFoundException",
    "PermissionDeniedException",
    "RemoteUnavailableError",
    "ResourceNotFoundException",
]
