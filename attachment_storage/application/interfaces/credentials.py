"""Credential interface (port) for the remote backend's OAuth2 tokens."""

from typing import Protocol

from attachment_storage.application.dtos.attachment import CredentialStatus


class ICredentialManager(Protocol):
    """Protocol for the token holder the router consults and updates."""

    def has_valid_token(self) -> bool:
        ...

    def set_tokens(self, access_token: str | None, refresh_token: str | None) -> None:
        """Replace both tokens; expiry restarts from now."""
        ...

    def status(self) -> CredentialStatus:
        ...

    def authorization_url(self, state: str | None = None) -> str:
        ...

    async def complete_authorization(self, code: str) -> CredentialStatus:
        ...
