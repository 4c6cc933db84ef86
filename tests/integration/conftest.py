"""Database fixtures for repository tests.

Runs against DATABASE_URL when set (e.g. postgresql+asyncpg://...), else
against a temporary SQLite file through aiosqlite. Rows written by a test
are deleted afterwards because repositories commit their own writes.
"""

import os
import uuid

import pytest
from sqlalchemy import Column, MetaData, String, Table, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from attachment_storage.infrastructure.persistence import models  # noqa: F401
from attachment_storage.infrastructure.persistence.database import Base
from attachment_storage.infrastructure.persistence.models import Attachment

# Host-side parent table used by TableParentLookup tests.
host_metadata = MetaData()
parent_table = Table("it_parent", host_metadata, Column("id", String, primary_key=True))


@pytest.fixture
def parent_prefix() -> str:
    """Unique prefix for parent ids written by one test."""
    return f"it-{uuid.uuid4().hex[:12]}-"


@pytest.fixture
async def db_session(tmp_path, parent_prefix) -> AsyncSession:
    url = os.environ.get("DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'attachments.db'}"
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(host_metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()
        await session.execute(
            delete(Attachment).where(Attachment.parent_id.startswith(parent_prefix))
        )
        await session.execute(
            delete(parent_table).where(parent_table.c.id.startswith(parent_prefix))
        )
        await session.commit()
    await engine.dispose()


@pytest.fixture
def host_parent_table() -> Table:
    return parent_table
