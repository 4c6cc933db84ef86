"""Attachment use cases: storage routing, retrieval and policy-checked removal."""

from attachment_storage.application.use_cases.attachments.attachment_operations import (
    AttachmentStorageRouter,
)

__all__ = ["AttachmentStorageRouter"]
