"""Application interfaces (ports): repositories, storage and credentials."""

from attachment_storage.application.interfaces.credentials import ICredentialManager
from attachment_storage.application.interfaces.repositories import (
    IAttachmentRepository,
    IParentLookup,
)
from attachment_storage.application.interfaces.storage import IStorageService

__all__ = [
    "IAttachmentRepository",
    "ICredentialManager",
    "IParentLookup",
    "IStorageService",
]
