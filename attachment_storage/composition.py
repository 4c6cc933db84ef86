"""Composition root: wires settings, backends, credentials and repositories into a router."""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from attachment_storage.application.use_cases.attachments import AttachmentStorageRouter
from attachment_storage.core.config import get_settings
from attachment_storage.infrastructure.external.storage.factory import StorageFactory
from attachment_storage.infrastructure.persistence.repositories import (
    AttachmentRepository,
    TableParentLookup,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from attachment_storage.application.interfaces.repositories import IParentLookup
    from attachment_storage.application.interfaces.storage import IStorageService
    from attachment_storage.core.config import Settings
    from attachment_storage.infrastructure.external.oauth import (
        CredentialLifecycleManager,
    )
    from attachment_storage.shared.enums import StorageBackend


@lru_cache
def get_credential_manager() -> CredentialLifecycleManager:
    """Process-wide credential manager (tokens are shared by every router)."""
    return StorageFactory.create_credential_manager(get_settings())


@lru_cache
def get_backends() -> dict[StorageBackend, IStorageService]:
    """Process-wide backend map built from settings."""
    return StorageFactory.create_backends(get_settings(), get_credential_manager())


def build_router(
    db: AsyncSession,
    parent_lookup: IParentLookup | None = None,
    *,
    parent_table: str = "parent",
    settings: Settings | None = None,
) -> AttachmentStorageRouter:
    """Build a router bound to one database session.

    Args:
        db: Session used by the metadata store (and the default parent lookup).
        parent_lookup: Existence check for parents; defaults to a lookup on
            parent_table's id column in the same database.
        parent_table: Host table holding parent entities.
        settings: When given, backends and credentials are built from these
            settings instead of the process-wide ones.
    """
    if settings is None:
        credentials = get_credential_manager()
        backends = get_backends()
    else:
        credentials = StorageFactory.create_credential_manager(settings)
        backends = StorageFactory.create_backends(settings, credentials)
    return AttachmentStorageRouter(
        backends=backends,
        metadata_store=AttachmentRepository(db),
        parent_lookup=parent_lookup or TableParentLookup(db, parent_table),
        credentials=credentials,
    )
