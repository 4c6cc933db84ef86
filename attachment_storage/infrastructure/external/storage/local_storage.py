"""Local filesystem storage with path validation and atomic writes."""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from typing import ClassVar

import aiofiles
import aiofiles.os

from attachment_storage.application.dtos.attachment import StoredObject
from attachment_storage.infrastructure.exceptions import (
    StorageDeleteError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)
from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.telemetry.logging import get_logger
from attachment_storage.shared.utils.generators import generate_unique_object_name

logger = get_logger(__name__)


class LocalStorageService:
    """Local filesystem storage with atomic writes and path traversal protection.

    Files are written flat under storage_root as '<uuid4>_<name><ext>'. The
    locator stored on the record is the absolute path; the public reference
    is '<public_prefix>/<unique name>'. Writes use temp file + os.replace.
    """

    BACKEND: ClassVar[StorageBackend] = StorageBackend.LOCAL
    PRECHECK_BEFORE_WRITE: ClassVar[bool] = False
    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, storage_root: str, public_prefix: str = "/files") -> None:
        """Initialize local storage. The root is created lazily on first write.

        Args:
            storage_root: Base directory for all files.
            public_prefix: URL path prefix under which stored files are served.
        """
        self.storage_root = Path(storage_root).resolve()
        self.public_prefix = public_prefix.rstrip("/")

    def _ensure_root(self) -> None:
        if not self.storage_root.exists():
            logger.info("Upload directory does not exist, creating it: %s", self.storage_root)
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, locator: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / locator).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(locator, "path_validation") from e
        return full_path

    async def store(
        self, data: bytes, suggested_name: str, content_type: str = "application/octet-stream"
    ) -> StoredObject:
        """Write data under a unique name. Returns absolute path and public reference."""
        unique_name = generate_unique_object_name(suggested_name)
        try:
            self._ensure_root()
            target_path = self._get_full_path(unique_name)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.storage_root,
                prefix=".tmp_",
                suffix=target_path.suffix,
            )
            os.close(temp_fd)
            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(data)
                os.chmod(temp_path, 0o640)
                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)
        except StoragePermissionError:
            raise
        except OSError as e:
            logger.error("Failed to save file to filesystem: %s", e, exc_info=True)
            raise StorageUploadError(unique_name, str(e)) from e
        logger.info(
            "Stored %d bytes locally as %s (%s)", len(data), target_path, content_type
        )
        return StoredObject(
            locator=str(target_path),
            public_ref=f"{self.public_prefix}/{unique_name}",
        )

    async def read(self, locator: str) -> AsyncIterator[bytes]:
        """Return a chunked stream over the file. Raises StorageNotFoundError if absent."""
        file_path = self._get_full_path(locator)
        if not file_path.is_file():
            raise StorageNotFoundError(locator)
        return self._iter_file(file_path)

    async def _iter_file(self, file_path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(self.CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    async def delete(self, locator: str) -> bool:
        """Delete file. Idempotent: returns False if it was already absent."""
        file_path = self._get_full_path(locator)
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            logger.debug("Delete of absent local file ignored: %s", file_path)
            return False
        except OSError as e:
            raise StorageDeleteError(locator, str(e)) from e
        logger.info("Deleted local file %s", file_path)
        return True

    async def is_available(self) -> bool:
        """Return True if the root exists (or can be created) and is writable."""
        try:
            self._ensure_root()
        except OSError as e:
            logger.warning("Local storage root unusable: %s", e)
            return False
        return os.access(self.storage_root, os.W_OK)
