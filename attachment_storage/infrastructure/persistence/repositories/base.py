"""Base repository: generic lookups and write helpers with per-write commit."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attachment_storage.infrastructure.persistence.database import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get_by_id, add and remove.

    Each write commits on success and rolls back on failure, so a record
    returned from a write is durable before the caller continues.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def _flush_and_commit(self, obj: ModelType | None = None) -> None:
        """Flush pending changes (refreshing obj), then commit; roll back on any failure."""
        try:
            await self.db.flush()
            if obj is not None:
                await self.db.refresh(obj)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def add(self, obj: ModelType) -> ModelType:
        """Persist a new record."""
        self.db.add(obj)
        await self._flush_and_commit(obj)
        return obj

    async def remove(self, obj: ModelType) -> None:
        """Delete a loaded record."""
        await self.db.delete(obj)
        await self._flush_and_commit()
