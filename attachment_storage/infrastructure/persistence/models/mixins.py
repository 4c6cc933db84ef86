"""SQLAlchemy mixins for common model patterns."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from attachment_storage.shared.utils.generators import generate_cuid


class CuidMixin:
    """Mixin for models using CUID as primary key. Provides id with default generate_cuid."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)
