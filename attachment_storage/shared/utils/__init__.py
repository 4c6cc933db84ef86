"""Shared utilities: datetime and generators."""

from attachment_storage.shared.utils.datetime import ensure_utc, utc_now
from attachment_storage.shared.utils.generators import (
    generate_cuid,
    generate_unique_object_name,
    split_extension,
)

__all__ = [
    "generate_cuid",
    "generate_unique_object_name",
    "split_extension",
    "utc_now",
    "ensure_utc",
]
