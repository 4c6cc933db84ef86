"""Storage interface (port) for attachment binaries.

Polymorphic over {store, read, delete}; variants are the local filesystem
and Google Drive. Adding a backend means implementing this protocol and
registering it with the router.
"""

from collections.abc import AsyncIterator
from typing import ClassVar, Protocol

from attachment_storage.application.dtos.attachment import StoredObject
from attachment_storage.shared.enums import StorageBackend


class IStorageService(Protocol):
    """Protocol for attachment binary backends."""

    BACKEND: ClassVar[StorageBackend]
    # Router checks is_available() before writing when True.
    PRECHECK_BEFORE_WRITE: ClassVar[bool]

    async def store(
        self, data: bytes, suggested_name: str, content_type: str
    ) -> StoredObject:
        """Write data under a collision-free name; return its locator."""
        ...

    async def read(self, locator: str) -> AsyncIterator[bytes]:
        """Check the content is reachable, then return a stream over it.

        Failures (missing content, credentials, exhausted retries) are raised
        by the await, never deferred to iteration.
        """
        ...

    async def delete(self, locator: str) -> bool:
        """Delete stored content. Returns False when it was already absent."""
        ...

    async def is_available(self) -> bool:
        """Return True if the backend can accept writes right now."""
        ...
