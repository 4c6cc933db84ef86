"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Remote (Google Drive) settings are optional: when the
remote backend is disabled or not configured, store requests that ask for
it fail with BackendUnavailableError instead of failing at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "attachment-storage"
    app_version: str = "1.0.0"
    debug: bool = False

    # Metadata store (SQLAlchemy async URL, e.g. postgresql+asyncpg://...)
    database_url: str = ""
    database_echo: bool = False

    # Local storage
    storage_root: str = "/var/attachments/storage"
    # Public prefix for locally stored files (relative_ref = prefix + "/" + name).
    storage_public_prefix: str = "/files"

    # Remote storage (Google Drive via OAuth2)
    remote_enabled: bool = False
    remote_client_id: str = ""
    remote_client_secret: SecretStr = SecretStr("")
    remote_redirect_uri: str = "http://localhost:8081/callback"
    remote_folder_id: str | None = None
    remote_connect_timeout_seconds: float = 30.0
    remote_max_attempts: int = 3
    remote_backoff_base: float = 2.0

    # Access tokens are treated as expired after this lease (shorter than
    # the provider's one hour lifetime to leave refresh headroom).
    credential_lease_minutes: int = 50

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def remote_configured(self) -> bool:
        """True when the remote backend is enabled and has client credentials."""
        return bool(
            self.remote_enabled
            and self.remote_client_id
            and self.remote_client_secret.get_secret_value()
        )

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Reject non-positive timeouts, attempt counts and leases."""
        if self.remote_connect_timeout_seconds <= 0:
            raise ValueError("REMOTE_CONNECT_TIMEOUT_SECONDS must be > 0")
        if self.remote_max_attempts < 1:
            raise ValueError("REMOTE_MAX_ATTEMPTS must be >= 1")
        if self.remote_backoff_base < 0:
            raise ValueError("REMOTE_BACKOFF_BASE must be >= 0")
        if self.credential_lease_minutes < 1:
            raise ValueError("CREDENTIAL_LEASE_MINUTES must be >= 1")
        if not self.storage_public_prefix.startswith("/"):
            raise ValueError(
                f"STORAGE_PUBLIC_PREFIX must start with '/', got: {self.storage_public_prefix!r}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
