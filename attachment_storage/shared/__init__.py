"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.utils import (
    ensure_utc,
    generate_cuid,
    generate_unique_object_name,
    utc_now,
)

__all__ = [
    "StorageBackend",
    "ensure_utc",
    "generate_cuid",
    "generate_unique_object_name",
    "utc_now",
]
