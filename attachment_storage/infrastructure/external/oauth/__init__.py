"""OAuth2 credentials for the remote storage backend."""

from attachment_storage.infrastructure.external.oauth.credential_manager import (
    CredentialLifecycleManager,
    CredentialState,
)
from attachment_storage.infrastructure.external.oauth.google_driver import (
    GoogleDriveOAuthDriver,
    OAuthTokens,
)

__all__ = [
    "CredentialLifecycleManager",
    "CredentialState",
    "GoogleDriveOAuthDriver",
    "OAuthTokens",
]
