"""Google Drive storage: bounded connection setup and retried upload/download/delete/list.

Uses google-api-python-client (sync) via asyncio.to_thread for an async API,
the same way the Gmail provider talks to Google APIs. Tokens come from the
CredentialLifecycleManager; every operation calls ensure_valid() before its
first attempt, so a credential failure never consumes retry budget.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import AsyncIterator, Callable
from typing import Any, ClassVar

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from attachment_storage.application.dtos.attachment import RemoteFile, StoredObject
from attachment_storage.infrastructure.exceptions import (
    ConnectTimeoutError,
    NoCredentialError,
)
from attachment_storage.infrastructure.external.oauth.credential_manager import (
    CredentialLifecycleManager,
)
from attachment_storage.infrastructure.external.storage.retry import (
    RetryPolicy,
    run_with_retry,
)
from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.telemetry.logging import get_logger
from attachment_storage.shared.utils.generators import generate_unique_object_name

logger = get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_REQUEST_TIMEOUT = 30.0


def build_drive_service(access_token: str, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> Any:
    """Build a Drive v3 service bound to access_token (blocking; run in a worker thread).

    Only the access token is handed to google-auth: refreshing is the
    credential manager's job, not the HTTP layer's.
    """
    credentials = Credentials(token=access_token)
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=request_timeout))
    return build("drive", "v3", http=http, cache_discovery=False)


class GoogleDriveStorageService:
    """Google Drive backend with bounded connect() and retry-with-backoff on every call."""

    BACKEND: ClassVar[StorageBackend] = StorageBackend.REMOTE
    PRECHECK_BEFORE_WRITE: ClassVar[bool] = True
    CHUNK_SIZE = 64 * 1024  # 64KB
    DOWNLOAD_CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        credentials: CredentialLifecycleManager,
        *,
        folder_id: str | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
        service_builder: Callable[[str], Any] | None = None,
    ) -> None:
        """Initialize Drive storage.

        Args:
            credentials: Shared credential manager (tokens, refresh).
            folder_id: Optional parent folder for uploaded files.
            connect_timeout: Upper bound in seconds for building a service.
            request_timeout: Socket timeout of each Drive HTTP request.
            retry_policy: Attempt budget and backoff; defaults to 3 attempts, 2s/4s.
            service_builder: Blocking factory access_token -> Drive service
                (defaults to build_drive_service).
        """
        self.credentials = credentials
        self.folder_id = folder_id or None
        self.connect_timeout = connect_timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._service_builder = service_builder or (
            lambda token: build_drive_service(token, request_timeout)
        )

    async def connect(self) -> Any:
        """Build a Drive service within connect_timeout seconds.

        Construction runs in a worker thread. On timeout the wait is
        cancelled and whatever the thread eventually builds is dropped
        with it: nothing is cached, so a timed-out service is never used.

        Raises:
            NoCredentialError: No access token held.
            ConnectTimeoutError: Construction exceeded connect_timeout.
        """
        access_token = self.credentials.snapshot().access_token
        if not access_token:
            raise NoCredentialError()
        logger.debug("Creating Drive service (timeout: %.0f seconds)", self.connect_timeout)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._service_builder, access_token),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                "Timeout while creating Drive service (%.0f seconds elapsed)",
                self.connect_timeout,
            )
            raise ConnectTimeoutError(self.connect_timeout) from None

    async def upload(self, data: bytes, content_type: str, suggested_name: str) -> str:
        """Create a file named '<uuid4>_<name><ext>' and return its Drive file id."""
        await self.credentials.ensure_valid()
        unique_name = generate_unique_object_name(suggested_name)
        metadata: dict[str, Any] = {"name": unique_name}
        if self.folder_id:
            metadata["parents"] = [self.folder_id]
        mimetype = content_type or "application/octet-stream"

        async def _attempt() -> str:
            service = await self.connect()

            def _create() -> dict[str, Any]:
                media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mimetype, resumable=False)
                return service.files().create(
                    body=metadata, media_body=media, fields="id"
                ).execute()

            created = await asyncio.to_thread(_create)
            return created["id"]

        file_id = await run_with_retry(_attempt, self.retry_policy, "upload")
        logger.info("File uploaded to Google Drive as %s with ID: %s", unique_name, file_id)
        return file_id

    async def download(self, file_id: str) -> bytes:
        """Fetch the whole content of a Drive file (retried as one unit)."""
        await self.credentials.ensure_valid()

        async def _attempt() -> bytes:
            service = await self.connect()

            def _fetch() -> bytes:
                buffer = io.BytesIO()
                request = service.files().get_media(fileId=file_id)
                downloader = MediaIoBaseDownload(
                    buffer, request, chunksize=self.DOWNLOAD_CHUNK_SIZE
                )
                done = False
                while not done:
                    _, done = downloader.next_chunk()
                return buffer.getvalue()

            return await asyncio.to_thread(_fetch)

        body = await run_with_retry(_attempt, self.retry_policy, "download")
        logger.info("Downloaded %d bytes from Google Drive file %s", len(body), file_id)
        return body

    async def delete(self, file_id: str) -> bool:
        """Delete a Drive file. A 404 propagates (non-retryable)."""
        await self.credentials.ensure_valid()

        async def _attempt() -> None:
            service = await self.connect()
            await asyncio.to_thread(service.files().delete(fileId=file_id).execute)

        await run_with_retry(_attempt, self.retry_policy, "delete")
        logger.info("File deleted from Google Drive with ID: %s", file_id)
        return True

    async def list_files(self, page_size: int = 10) -> list[RemoteFile]:
        """List files (in the configured folder when set), newest first."""
        await self.credentials.ensure_valid()
        query = "trashed = false"
        if self.folder_id:
            query = f"'{self.folder_id}' in parents and {query}"

        async def _attempt() -> dict[str, Any]:
            service = await self.connect()
            request = service.files().list(
                pageSize=page_size,
                q=query,
                orderBy="createdTime desc",
                fields="nextPageToken, files(id, name)",
            )
            return await asyncio.to_thread(request.execute)

        result = await run_with_retry(_attempt, self.retry_policy, "list")
        return [RemoteFile(id=f["id"], name=f.get("name", "")) for f in result.get("files", [])]

    # IStorageService

    async def store(
        self, data: bytes, suggested_name: str, content_type: str = "application/octet-stream"
    ) -> StoredObject:
        file_id = await self.upload(data, content_type, suggested_name)
        return StoredObject(locator=file_id, public_ref=None)

    async def read(self, locator: str) -> AsyncIterator[bytes]:
        """Download the whole file first, then return a chunked stream over it."""
        body = await self.download(locator)
        return self._iter_body(body)

    async def _iter_body(self, body: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(body), self.CHUNK_SIZE):
            yield body[start : start + self.CHUNK_SIZE]

    async def is_available(self) -> bool:
        """Valid token plus one authenticated 'about' call. Single attempt, never raises."""
        if not self.credentials.has_valid_token():
            logger.warning("No valid access token available for Google Drive")
            return False
        try:
            service = await self.connect()
            about = await asyncio.to_thread(
                service.about().get(fields="user,kind").execute
            )
        except Exception as e:
            logger.warning("Google Drive connectivity test failed: %s", e)
            return False
        user = (about or {}).get("user") or {}
        logger.info(
            "Google Drive connectivity test successful (user: %s)",
            user.get("emailAddress", "unknown"),
        )
        return True
