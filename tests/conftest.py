"""Pytest configuration and fixtures for attachment_storage.

Collaborators of the router (metadata store, parent lookup, remote backend)
are replaced by in-memory fakes; the local backend writes under tmp_path.
"""

from __future__ import annotations

import dataclasses
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest

from attachment_storage.application.dtos.attachment import (
    AttachmentCreate,
    AttachmentRecord,
    StoredObject,
)
from attachment_storage.application.use_cases.attachments import AttachmentStorageRouter
from attachment_storage.core.config import get_settings
from attachment_storage.domain.exceptions import AttachmentNotFoundException
from attachment_storage.infrastructure.external.oauth.credential_manager import (
    CredentialLifecycleManager,
)
from attachment_storage.infrastructure.external.storage.local_storage import (
    LocalStorageService,
)
from attachment_storage.infrastructure.exceptions import StorageNotFoundError
from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.utils.generators import generate_cuid


class InMemoryAttachmentRepository:
    """IAttachmentRepository kept in a dict. Set fail_save to make save() raise."""

    def __init__(self) -> None:
        self.records: dict[str, AttachmentRecord] = {}
        self.save_calls = 0
        self.fail_save: Exception | None = None

    async def save(self, data: AttachmentCreate) -> AttachmentRecord:
        self.save_calls += 1
        if self.fail_save is not None:
            raise self.fail_save
        record = AttachmentRecord(id=generate_cuid(), **dataclasses.asdict(data))
        self.records[record.id] = record
        return record

    async def find_by_id(self, attachment_id: str) -> AttachmentRecord | None:
        return self.records.get(attachment_id)

    async def find_by_parent(self, parent_id: str) -> list[AttachmentRecord]:
        found = [r for r in self.records.values() if r.parent_id == parent_id]
        return sorted(found, key=lambda r: r.created_at)

    async def exists_by_id(self, attachment_id: str) -> bool:
        return attachment_id in self.records

    async def delete_by_id(self, attachment_id: str) -> None:
        self.records.pop(attachment_id, None)

    async def set_active(self, attachment_id: str, active: bool) -> AttachmentRecord:
        record = self.records.get(attachment_id)
        if record is None:
            raise AttachmentNotFoundException(attachment_id)
        updated = dataclasses.replace(record, active=active)
        self.records[attachment_id] = updated
        return updated


class FakeParentLookup:
    """IParentLookup over a fixed set of parent ids."""

    def __init__(self, existing: set[str] | None = None) -> None:
        self.existing = set(existing or set())

    async def exists(self, parent_id: str) -> bool:
        return parent_id in self.existing


class InMemoryRemoteStorage:
    """Remote-tagged IStorageService without network. Toggle `available` for the precheck."""

    BACKEND = StorageBackend.REMOTE
    PRECHECK_BEFORE_WRITE = True

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.available = True
        self.store_calls = 0
        self.delete_calls: list[str] = []
        self.fail_delete: Exception | None = None

    async def store(
        self, data: bytes, suggested_name: str, content_type: str = "application/octet-stream"
    ) -> StoredObject:
        self.store_calls += 1
        file_id = f"drive-{len(self.objects) + 1}"
        self.objects[file_id] = data
        return StoredObject(locator=file_id, public_ref=None)

    async def read(self, locator: str) -> AsyncIterator[bytes]:
        if locator not in self.objects:
            raise StorageNotFoundError(locator)
        return self._iter(self.objects[locator])

    async def _iter(self, body: bytes) -> AsyncIterator[bytes]:
        yield body

    async def delete(self, locator: str) -> bool:
        self.delete_calls.append(locator)
        if self.fail_delete is not None:
            raise self.fail_delete
        return self.objects.pop(locator, None) is not None

    async def is_available(self) -> bool:
        return self.available


class ManualClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


async def read_all(stream: AsyncIterator[bytes]) -> bytes:
    """Drain an attachment stream into bytes."""
    return b"".join([chunk async for chunk in stream])


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def local_storage(tmp_path) -> LocalStorageService:
    return LocalStorageService(str(tmp_path / "storage"), public_prefix="/files")


@pytest.fixture
def remote_storage() -> InMemoryRemoteStorage:
    return InMemoryRemoteStorage()


@pytest.fixture
def metadata_store() -> InMemoryAttachmentRepository:
    return InMemoryAttachmentRepository()


@pytest.fixture
def parents() -> FakeParentLookup:
    return FakeParentLookup({"1", "2"})


@pytest.fixture
def credentials(clock: ManualClock) -> CredentialLifecycleManager:
    return CredentialLifecycleManager(clock=clock)


@pytest.fixture
def router(
    local_storage: LocalStorageService,
    metadata_store: InMemoryAttachmentRepository,
    parents: FakeParentLookup,
    credentials: CredentialLifecycleManager,
) -> AttachmentStorageRouter:
    """Router with only the local backend registered (remote disabled)."""
    return AttachmentStorageRouter(
        backends={StorageBackend.LOCAL: local_storage},
        metadata_store=metadata_store,
        parent_lookup=parents,
        credentials=credentials,
    )


@pytest.fixture
def router_with_remote(
    local_storage: LocalStorageService,
    remote_storage: InMemoryRemoteStorage,
    metadata_store: InMemoryAttachmentRepository,
    parents: FakeParentLookup,
    credentials: CredentialLifecycleManager,
) -> AttachmentStorageRouter:
    return AttachmentStorageRouter(
        backends={
            StorageBackend.LOCAL: local_storage,
            StorageBackend.REMOTE: remote_storage,
        },
        metadata_store=metadata_store,
        parent_lookup=parents,
        credentials=credentials,
    )


@pytest.fixture
def drain():
    """Helper that drains an attachment stream: `await drain(stream)`."""
    return read_all
