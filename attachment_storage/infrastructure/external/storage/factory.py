"""Storage backend factory: builds the backend map and credential manager from settings."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from attachment_storage.application.interfaces.storage import IStorageService
from attachment_storage.infrastructure.external.oauth.credential_manager import (
    CredentialLifecycleManager,
)
from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from attachment_storage.core.config import Settings

logger = get_logger(__name__)


class StorageFactory:
    """Factory for storage backends and the remote credential manager."""

    @staticmethod
    def create_credential_manager(
        settings: "Settings | None" = None,
    ) -> CredentialLifecycleManager:
        """Create the credential manager; it has a token endpoint only when remote is configured."""
        from attachment_storage.core.config import get_settings

        s = settings or get_settings()
        lease = timedelta(minutes=s.credential_lease_minutes)
        if not s.remote_configured:
            return CredentialLifecycleManager(lease=lease)

        from attachment_storage.infrastructure.external.oauth.google_driver import (
            GoogleDriveOAuthDriver,
        )

        driver = GoogleDriveOAuthDriver(
            client_id=s.remote_client_id,
            client_secret=s.remote_client_secret.get_secret_value(),
            redirect_uri=s.remote_redirect_uri,
        )
        return CredentialLifecycleManager(driver, lease=lease)

    @staticmethod
    def create_backends(
        settings: "Settings | None" = None,
        credentials: CredentialLifecycleManager | None = None,
    ) -> dict[StorageBackend, IStorageService]:
        """Create the backend map for the router.

        Local is always registered. Remote is registered only when enabled
        and client id/secret are set; otherwise a warning is logged and
        store requests for it fail with BackendUnavailableError.

        Raises:
            ValueError: Remote is configured but no credential manager was given.
        """
        from attachment_storage.core.config import get_settings
        from attachment_storage.infrastructure.external.storage.local_storage import (
            LocalStorageService,
        )

        s = settings or get_settings()
        if not s.storage_root:
            raise ValueError("STORAGE_ROOT required for local backend")
        backends: dict[StorageBackend, IStorageService] = {
            StorageBackend.LOCAL: LocalStorageService(
                storage_root=s.storage_root,
                public_prefix=s.storage_public_prefix,
            ),
        }

        if not s.remote_enabled:
            logger.info("Remote storage disabled; only local storage is available")
            return backends
        if not s.remote_configured:
            logger.warning(
                "Remote storage enabled but REMOTE_CLIENT_ID/REMOTE_CLIENT_SECRET are not set; "
                "remote storage is unavailable"
            )
            return backends
        if credentials is None:
            raise ValueError("Remote storage requires a CredentialLifecycleManager")

        from attachment_storage.infrastructure.external.storage.drive_storage import (
            GoogleDriveStorageService,
        )
        from attachment_storage.infrastructure.external.storage.retry import RetryPolicy

        backends[StorageBackend.REMOTE] = GoogleDriveStorageService(
            credentials,
            folder_id=s.remote_folder_id,
            connect_timeout=s.remote_connect_timeout_seconds,
            retry_policy=RetryPolicy(
                max_attempts=s.remote_max_attempts,
                backoff_base=s.remote_backoff_base,
            ),
        )
        logger.info("Remote storage (Google Drive) registered")
        return backends
