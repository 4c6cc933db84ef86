"""Attachment repository. Returns application DTOs."""

from __future__ import annotations

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from attachment_storage.application.dtos.attachment import (
    AttachmentCreate,
    AttachmentRecord,
)
from attachment_storage.domain.exceptions import AttachmentNotFoundException
from attachment_storage.infrastructure.persistence.models.attachment import Attachment
from attachment_storage.infrastructure.persistence.repositories.base import (
    BaseRepository,
)
from attachment_storage.shared.utils import ensure_utc


def _create_to_attachment(d: AttachmentCreate) -> Attachment:
    """Map AttachmentCreate (write-model) to ORM Attachment for persistence."""
    return Attachment(
        parent_id=d.parent_id,
        display_name=d.display_name,
        created_at=d.created_at,
        origin=d.origin,
        active=d.active,
        storage_backend=d.storage_backend,
        physical_path=d.physical_path,
        remote_object_id=d.remote_object_id,
        relative_ref=d.relative_ref,
        content_type=d.content_type,
        size=d.size,
    )


def _attachment_to_record(a: Attachment) -> AttachmentRecord:
    """Map ORM Attachment to application AttachmentRecord."""
    return AttachmentRecord(
        id=a.id,
        parent_id=a.parent_id,
        display_name=a.display_name,
        # SQLite drops tzinfo; records always carry UTC.
        created_at=ensure_utc(a.created_at),
        origin=a.origin,
        storage_backend=a.storage_backend,
        physical_path=a.physical_path,
        remote_object_id=a.remote_object_id,
        relative_ref=a.relative_ref,
        content_type=a.content_type,
        size=a.size,
        active=a.active,
    )


class AttachmentRepository(BaseRepository[Attachment]):
    """Attachment metadata store. save() accepts AttachmentCreate; reads return AttachmentRecord.

    Expects a session created with expire_on_commit=False (as session_scope()
    provides): records are mapped from rows after their write commits.
    """

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Attachment)

    async def save(self, data: AttachmentCreate) -> AttachmentRecord:
        """Persist a new record; its id is assigned here."""
        created = await self.add(_create_to_attachment(data))
        return _attachment_to_record(created)

    async def find_by_id(self, attachment_id: str) -> AttachmentRecord | None:
        row = await self.get_by_id(attachment_id)
        return _attachment_to_record(row) if row is not None else None

    async def find_by_parent(self, parent_id: str) -> list[AttachmentRecord]:
        """Return records of one parent entity, oldest first."""
        result = await self.db.execute(
            select(Attachment)
            .where(Attachment.parent_id == parent_id)
            .order_by(Attachment.created_at.asc(), Attachment.id.asc())
        )
        return [_attachment_to_record(a) for a in result.scalars().all()]

    async def exists_by_id(self, attachment_id: str) -> bool:
        result = await self.db.execute(
            select(exists().where(Attachment.id == attachment_id))
        )
        return bool(result.scalar())

    async def delete_by_id(self, attachment_id: str) -> None:
        """Delete the record. Absent ids are a no-op."""
        row = await self.get_by_id(attachment_id)
        if row is None:
            return
        await self.remove(row)

    async def set_active(self, attachment_id: str, active: bool) -> AttachmentRecord:
        """Update the soft-delete flag. Raises AttachmentNotFoundException if missing."""
        row = await self.get_by_id(attachment_id)
        if row is None:
            raise AttachmentNotFoundException(attachment_id)
        row.active = active
        await self._flush_and_commit(row)
        return _attachment_to_record(row)
