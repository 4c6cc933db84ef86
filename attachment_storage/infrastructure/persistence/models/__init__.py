"""ORM models. Importing this package registers every table on Base.metadata."""

from attachment_storage.infrastructure.persistence.models.attachment import Attachment

__all__ = ["Attachment"]
