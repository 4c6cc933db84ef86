"""Attachment operations: store, fetch and remove binaries across storage backends.

The router is the only entry point for attachment binaries. It picks the
backend, enforces preconditions before writing, keeps metadata and binary
consistent (compensating delete when the record cannot be saved) and applies
the deletion policy. It never retries: remote retries live in the Drive
backend.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Callable, Mapping
from datetime import datetime

from attachment_storage.application.dtos.attachment import (
    AttachmentCreate,
    AttachmentRecord,
    CredentialStatus,
)
from attachment_storage.application.interfaces.credentials import ICredentialManager
from attachment_storage.application.interfaces.repositories import (
    IAttachmentRepository,
    IParentLookup,
)
from attachment_storage.application.interfaces.storage import IStorageService
from attachment_storage.domain import deletion_policy
from attachment_storage.domain.exceptions import (
    AttachmentNotFoundException,
    BackendUnavailableError,
    ParentNotFoundException,
    PermissionDeniedException,
    RemoteUnavailableError,
)
from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.telemetry.logging import get_logger
from attachment_storage.shared.utils.datetime import utc_now

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _suggested_name(filename: str) -> str:
    """Strip directories and NUL bytes from a client-supplied filename."""
    return os.path.basename(filename.replace("\\", "/")).replace("\x00", "").strip()


class AttachmentStorageRouter:
    """Single entry point for attachment binaries and their metadata records."""

    def __init__(
        self,
        backends: Mapping[StorageBackend, IStorageService],
        metadata_store: IAttachmentRepository,
        parent_lookup: IParentLookup,
        credentials: ICredentialManager,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the router.

        Args:
            backends: Registered backends. A backend missing from the map is
                unavailable (remote disabled or not configured).
            metadata_store: Attachment record persistence.
            parent_lookup: Existence check for owning business entities.
            credentials: Remote backend token holder.
            clock: Source of record creation times.
        """
        self.backends = dict(backends)
        self.metadata_store = metadata_store
        self.parent_lookup = parent_lookup
        self.credentials = credentials
        self._clock = clock

    def _backend(self, backend: StorageBackend) -> IStorageService:
        service = self.backends.get(backend)
        if service is None:
            logger.warning("Requested storage backend %s is not available", backend.value)
            raise BackendUnavailableError(
                backend.value, "backend is disabled or not configured"
            )
        return service

    async def _check_can_write(self, service: IStorageService) -> None:
        """Preconditions for backends that must be reachable before a write."""
        if not self.credentials.has_valid_token():
            logger.warning("Remote storage not available: no valid access token")
            raise RemoteUnavailableError("no valid access token")
        if not await service.is_available():
            logger.warning("Remote storage not available: connectivity check failed")
            raise RemoteUnavailableError("connectivity check failed")

    async def _compensate(self, service: IStorageService, locator: str) -> None:
        """Best-effort removal of a binary whose record could not be saved."""
        try:
            await service.delete(locator)
            logger.info("Compensating delete removed orphan binary %s", locator)
        except Exception:
            logger.error(
                "Compensating delete failed; orphan binary left at %s", locator, exc_info=True
            )

    async def store(
        self,
        data: bytes,
        filename: str,
        content_type: str | None,
        parent_id: str,
        origin: str,
        backend: StorageBackend = StorageBackend.LOCAL,
    ) -> AttachmentRecord:
        """Write an attachment binary and create its record.

        Raises:
            ParentNotFoundException: parent_id does not exist.
            BackendUnavailableError: Requested backend is not registered.
            RemoteUnavailableError: Remote precheck failed; nothing was written.
            Exception: Any backend write or metadata failure, unmodified. When
                the record could not be saved the written binary is removed
                first (best effort).
        """
        if not await self.parent_lookup.exists(parent_id):
            raise ParentNotFoundException(parent_id)
        service = self._backend(backend)
        if service.PRECHECK_BEFORE_WRITE:
            await self._check_can_write(service)

        content_type = content_type or DEFAULT_CONTENT_TYPE
        stored = await service.store(data, _suggested_name(filename), content_type)
        is_remote = backend == StorageBackend.REMOTE
        try:
            create_dto = AttachmentCreate(
                parent_id=parent_id,
                display_name=filename,
                created_at=self._clock(),
                origin=origin,
                storage_backend=backend,
                physical_path=None if is_remote else stored.locator,
                remote_object_id=stored.locator if is_remote else None,
                relative_ref=stored.public_ref,
                content_type=content_type,
                size=len(data),
            )
            record = await self.metadata_store.save(create_dto)
        except Exception:
            logger.error(
                "Saving attachment record failed for parent %s; removing stored binary",
                parent_id,
                exc_info=True,
            )
            await self._compensate(service, stored.locator)
            raise
        logger.info(
            "Attachment %s stored on %s for parent %s (%d bytes)",
            record.id,
            backend.value,
            parent_id,
            len(data),
        )
        return record

    async def get(self, attachment_id: str) -> AttachmentRecord | None:
        return await self.metadata_store.find_by_id(attachment_id)

    async def list_for_parent(self, parent_id: str) -> list[AttachmentRecord]:
        """Return the records of one parent entity, oldest first."""
        return await self.metadata_store.find_by_parent(parent_id)

    async def _require(self, attachment_id: str) -> AttachmentRecord:
        record = await self.metadata_store.find_by_id(attachment_id)
        if record is None:
            raise AttachmentNotFoundException(attachment_id)
        return record

    async def fetch_content(self, attachment_id: str) -> AsyncIterator[bytes]:
        """Return a stream over the attachment's bytes, read from the backend on its record.

        Backend failures surface here, before any byte is handed out.

        Raises:
            AttachmentNotFoundException: No record for attachment_id.
            BackendUnavailableError: The record's backend is no longer registered.
            StorageNotFoundError: The binary is gone from its backend.
            Exception: Remote credential or retry failures, unmodified.
        """
        record = await self._require(attachment_id)
        service = self._backend(record.storage_backend)
        logger.debug(
            "Reading attachment %s from %s", attachment_id, record.storage_backend.value
        )
        return await service.read(record.locator)

    async def can_delete(self, attachment_id: str, requesting_origin: str) -> bool:
        """Deletion policy check for an existing record; False when it does not exist."""
        record = await self.metadata_store.find_by_id(attachment_id)
        if record is None:
            logger.info("Attachment %s not found for deletion check", attachment_id)
            return False
        return deletion_policy.can_delete(record.origin, requesting_origin)

    async def remove(self, attachment_id: str, requesting_origin: str) -> None:
        """Delete the binary (failure logged, not raised), then the record.

        Raises:
            AttachmentNotFoundException: No record for attachment_id.
            PermissionDeniedException: Policy refuses; storage and record untouched.
            BackendUnavailableError: The record's backend is no longer registered;
                the binary cannot be attempted, so the record is kept.
        """
        record = await self._require(attachment_id)
        if not deletion_policy.can_delete(record.origin, requesting_origin):
            logger.warning(
                "Deletion of attachment %s (origin %s) refused for %s",
                attachment_id,
                record.origin,
                requesting_origin,
            )
            raise PermissionDeniedException(attachment_id, requesting_origin)

        service = self._backend(record.storage_backend)
        try:
            await service.delete(record.locator)
        except Exception:
            logger.error(
                "Deleting binary of attachment %s failed (%s); removing record anyway",
                attachment_id,
                record.locator,
                exc_info=True,
            )
        await self.metadata_store.delete_by_id(attachment_id)
        logger.info("Attachment %s removed by %s", attachment_id, requesting_origin)

    async def update_active(self, attachment_id: str, active: bool) -> AttachmentRecord:
        """Set the soft-delete flag (the only mutation of an existing record)."""
        if not await self.metadata_store.exists_by_id(attachment_id):
            raise AttachmentNotFoundException(attachment_id)
        return await self.metadata_store.set_active(attachment_id, active)

    # Remote credentials

    def set_credentials(self, access_token: str | None, refresh_token: str | None) -> None:
        self.credentials.set_tokens(access_token, refresh_token)

    def credential_status(self) -> CredentialStatus:
        return self.credentials.status()

    def authorization_url(self, state: str | None = None) -> str:
        """Consent URL for connecting the remote account."""
        return self.credentials.authorization_url(state)

    async def complete_authorization(self, code: str) -> CredentialStatus:
        """Exchange the consent callback code for tokens and store them."""
        return await self.credentials.complete_authorization(code)

    async def backend_healthy(self, backend: StorageBackend = StorageBackend.REMOTE) -> bool:
        """True if the backend is registered and currently usable."""
        service = self.backends.get(backend)
        if service is None:
            return False
        return await service.is_available()
