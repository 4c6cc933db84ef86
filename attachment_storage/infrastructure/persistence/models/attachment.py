"""Attachment ORM model. Metadata of one stored binary (local file or Drive file)."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from attachment_storage.infrastructure.persistence.database import Base
from attachment_storage.infrastructure.persistence.models.mixins import CuidMixin
from attachment_storage.shared.enums import StorageBackend


class Attachment(CuidMixin, Base):
    """Attachment entity. Table: attachment. Exactly one locator column is set, matching storage_backend."""

    __tablename__ = "attachment"

    parent_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    origin: Mapped[str] = mapped_column(String, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    storage_backend: Mapped[StorageBackend] = mapped_column(
        Enum(
            StorageBackend,
            name="storage_backend",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    physical_path: Mapped[str | None] = mapped_column(String, nullable=True)
    remote_object_id: Mapped[str | None] = mapped_column(String, nullable=True)
    relative_ref: Mapped[str | None] = mapped_column(String, nullable=True)
    content_type: Mapped[str | None] = mapped_column(String, nullable=True)
    size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("ix_attachment_parent_created", "parent_id", "created_at"),
        CheckConstraint(
            "(storage_backend = 'local' AND physical_path IS NOT NULL AND remote_object_id IS NULL)"
            " OR "
            "(storage_backend = 'remote' AND remote_object_id IS NOT NULL AND physical_path IS NULL)",
            name="ck_attachment_locator_matches_backend",
        ),
    )
