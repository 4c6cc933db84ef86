"""Unit tests for GoogleDriveStorageService with a mocked Drive service (no network)."""

import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from attachment_storage.application.dtos.attachment import RemoteFile, StoredObject
from attachment_storage.infrastructure.exceptions import (
    ConnectTimeoutError,
    NoCredentialError,
    RefreshFailedError,
    RemoteOperationExhaustedError,
)
from attachment_storage.infrastructure.external.storage import drive_storage
from attachment_storage.infrastructure.external.storage.drive_storage import (
    GoogleDriveStorageService,
)
from attachment_storage.infrastructure.external.storage.retry import RetryPolicy


def http_error(status: int) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b"", uri="https://www.googleapis.com/drive/v3")


class FakeDownloader:
    """Stands in for MediaIoBaseDownload: writes request.content in one chunk."""

    def __init__(self, fd, request, chunksize=None) -> None:
        self.fd = fd
        self.request = request

    def next_chunk(self):
        self.fd.write(self.request.content)
        return None, True


@pytest.fixture(autouse=True)
def _fake_downloader(monkeypatch):
    monkeypatch.setattr(drive_storage, "MediaIoBaseDownload", FakeDownloader)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def service() -> MagicMock:
    return MagicMock(name="drive")


@pytest.fixture
def built_tokens() -> list[str]:
    return []


@pytest.fixture
def drive(credentials, service, sleeps, built_tokens) -> GoogleDriveStorageService:
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def builder(token: str):
        built_tokens.append(token)
        return service

    credentials.set_tokens("access-1", "refresh-1")
    return GoogleDriveStorageService(
        credentials,
        folder_id="folder-9",
        retry_policy=RetryPolicy(sleep=record_sleep),
        service_builder=builder,
    )


class TestConnect:
    async def test_builds_with_current_access_token(self, drive, service, built_tokens) -> None:
        assert await drive.connect() is service
        assert built_tokens == ["access-1"]

    async def test_without_access_token_raises(self, credentials, drive) -> None:
        credentials.clear()
        with pytest.raises(NoCredentialError):
            await drive.connect()

    async def test_slow_construction_times_out(self, credentials) -> None:
        credentials.set_tokens("a", "r")

        def slow_builder(token: str):
            time.sleep(0.3)
            return MagicMock()

        drive = GoogleDriveStorageService(
            credentials, connect_timeout=0.05, service_builder=slow_builder
        )
        started = time.monotonic()
        with pytest.raises(ConnectTimeoutError) as exc_info:
            await drive.connect()
        assert time.monotonic() - started < 0.25
        assert exc_info.value.error_code == "CONNECT_TIMEOUT"


class TestUpload:
    async def test_upload_returns_file_id(self, drive, service) -> None:
        service.files.return_value.create.return_value.execute.return_value = {"id": "f1"}
        stored = await drive.store(b"abc", "report.pdf", "application/pdf")
        assert stored == StoredObject(locator="f1", public_ref=None)
        kwargs = service.files.return_value.create.call_args.kwargs
        assert kwargs["body"]["name"].endswith("_report.pdf")
        assert kwargs["body"]["parents"] == ["folder-9"]
        assert kwargs["fields"] == "id"

    async def test_transient_failure_retried_with_fresh_connection(
        self, drive, service, sleeps, built_tokens
    ) -> None:
        service.files.return_value.create.return_value.execute.side_effect = [
            http_error(503),
            {"id": "f2"},
        ]
        assert await drive.upload(b"abc", "text/plain", "a.txt") == "f2"
        assert sleeps == [2.0]
        assert len(built_tokens) == 2

    async def test_same_object_name_across_attempts(self, drive, service) -> None:
        service.files.return_value.create.return_value.execute.side_effect = [
            OSError("reset"),
            {"id": "f3"},
        ]
        await drive.upload(b"abc", "text/plain", "a.txt")
        names = {c.kwargs["body"]["name"] for c in service.files.return_value.create.call_args_list}
        assert len(names) == 1

    async def test_credential_failure_aborts_before_any_attempt(
        self, credentials, drive, built_tokens, clock
    ) -> None:
        clock.advance(hours=1)
        with pytest.raises(RefreshFailedError):
            await drive.upload(b"abc", "text/plain", "a.txt")
        assert built_tokens == []


class TestDownload:
    async def test_download_and_read(self, drive, service, drain) -> None:
        service.files.return_value.get_media.side_effect = lambda fileId: SimpleNamespace(
            content=b"hello"
        )
        assert await drive.download("f1") == b"hello"
        assert await drain(await drive.read("f1")) == b"hello"
        service.files.return_value.get_media.assert_called_with(fileId="f1")

    async def test_exhausted_after_three_failures(self, drive, service, sleeps) -> None:
        service.files.return_value.get_media.side_effect = http_error(500)
        with pytest.raises(RemoteOperationExhaustedError) as exc_info:
            await drive.download("f1")
        assert sleeps == [2.0, 4.0]
        assert service.files.return_value.get_media.call_count == 3
        assert isinstance(exc_info.value.last_error, HttpError)

    async def test_read_raises_before_streaming(self, drive, service, sleeps) -> None:
        service.files.return_value.get_media.side_effect = http_error(503)
        with pytest.raises(RemoteOperationExhaustedError):
            await drive.read("f1")

    async def test_connect_timeouts_count_as_attempts(self, credentials, sleeps) -> None:
        credentials.set_tokens("a", "r")

        async def record_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        def slow_builder(token: str):
            time.sleep(0.1)
            return MagicMock()

        drive = GoogleDriveStorageService(
            credentials,
            connect_timeout=0.01,
            retry_policy=RetryPolicy(sleep=record_sleep),
            service_builder=slow_builder,
        )
        with pytest.raises(RemoteOperationExhaustedError) as exc_info:
            await drive.download("f1")
        assert isinstance(exc_info.value.last_error, ConnectTimeoutError)
        assert sleeps == [2.0, 4.0]


class TestDelete:
    async def test_delete(self, drive, service) -> None:
        assert await drive.delete("f1") is True
        service.files.return_value.delete.assert_called_once_with(fileId="f1")

    async def test_not_found_is_attempted_once(self, drive, service, sleeps) -> None:
        service.files.return_value.delete.return_value.execute.side_effect = http_error(404)
        with pytest.raises(HttpError):
            await drive.delete("gone")
        assert service.files.return_value.delete.return_value.execute.call_count == 1
        assert sleeps == []


async def test_list_files_in_folder(drive, service) -> None:
    service.files.return_value.list.return_value.execute.return_value = {
        "files": [{"id": "1", "name": "a.txt"}, {"id": "2", "name": "b.txt"}]
    }
    files = await drive.list_files(page_size=2)
    assert files == [RemoteFile("1", "a.txt"), RemoteFile("2", "b.txt")]
    kwargs = service.files.return_value.list.call_args.kwargs
    assert kwargs["pageSize"] == 2
    assert "'folder-9' in parents" in kwargs["q"]


class TestIsAvailable:
    async def test_probe_succeeds(self, drive, service) -> None:
        service.about.return_value.get.return_value.execute.return_value = {
            "user": {"emailAddress": "owner@example.com"},
            "kind": "drive#about",
        }
        assert await drive.is_available() is True
        service.about.return_value.get.assert_called_with(fields="user,kind")

    async def test_probe_failure_reports_unavailable(self, drive, service) -> None:
        service.about.return_value.get.return_value.execute.side_effect = http_error(500)
        assert await drive.is_available() is False

    async def test_no_valid_token_skips_probe(self, credentials, drive, built_tokens) -> None:
        credentials.clear()
        assert await drive.is_available() is False
        assert built_tokens == []
