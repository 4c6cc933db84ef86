"""Repositories: SQLAlchemy implementations of the application's persistence ports."""

from attachment_storage.infrastructure.persistence.repositories.attachment_repo import (
    AttachmentRepository,
)
from attachment_storage.infrastructure.persistence.repositories.base import (
    BaseRepository,
)
from attachment_storage.infrastructure.persistence.repositories.parent_lookup import (
    TableParentLookup,
)

__all__ = [
    "AttachmentRepository",
    "BaseRepository",
    "TableParentLookup",
]
