"""Repository interfaces (ports) for the application layer.

Protocols define contracts for metadata persistence and the parent-entity
lookup (DIP). Infrastructure implements them; tests use in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

from attachment_storage.application.dtos.attachment import (
    AttachmentCreate,
    AttachmentRecord,
)


class IAttachmentRepository(Protocol):
    """Protocol for attachment metadata records keyed by attachment id."""

    async def save(self, data: AttachmentCreate) -> AttachmentRecord:
        """Persist a new record and return it with its assigned id."""
        ...

    async def find_by_id(self, attachment_id: str) -> AttachmentRecord | None:
        ...

    async def find_by_parent(self, parent_id: str) -> list[AttachmentRecord]:
        """Return records of one parent entity, oldest first."""
        ...

    async def exists_by_id(self, attachment_id: str) -> bool:
        ...

    async def delete_by_id(self, attachment_id: str) -> None:
        ...

    async def set_active(self, attachment_id: str, active: bool) -> AttachmentRecord:
        """Update the soft-delete flag. Raises AttachmentNotFoundException if missing."""
        ...


class IParentLookup(Protocol):
    """Protocol for checking that an owning business entity exists."""

    async def exists(self, parent_id: str) -> bool:
        ...
