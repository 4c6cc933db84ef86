"""Storage: local filesystem and Google Drive backends.

Factory builds the backend map from attachment_storage.core.config. The
Drive implementation is imported lazily inside StorageFactory.create_backends()
so that local-only deployments never load the Google client libraries.

Implementations satisfy IStorageService (store, read, delete, is_available).
"""

from attachment_storage.infrastructure.external.storage.factory import StorageFactory
from attachment_storage.infrastructure.external.storage.retry import (
    RetryPolicy,
    run_with_retry,
)

__all__ = [
    "RetryPolicy",
    "StorageFactory",
    "run_with_retry",
]
