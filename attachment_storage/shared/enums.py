"""Shared enumerations for the attachment storage service.

Cross-cutting enums used by application and infrastructure (backend tags
persisted on every attachment record).
"""

from enum import Enum


class StorageBackend(str, Enum):
    """Where an attachment's binary lives. Fixed at creation, never changes."""

    LOCAL = "local"
    REMOTE = "remote"
