"""Parent-entity lookup against a host table (any table with a string/int id column)."""

from __future__ import annotations

import re

from sqlalchemy import column, literal, select, table
from sqlalchemy.ext.asyncio import AsyncSession

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class TableParentLookup:
    """IParentLookup backed by a row-existence query on the host's parent table.

    Table and column names are identifiers, validated at construction; the
    parent id is always a bound parameter.
    """

    def __init__(self, db: AsyncSession, table_name: str, id_column: str = "id") -> None:
        for name in (table_name, id_column):
            if not _IDENTIFIER_RE.fullmatch(name):
                raise ValueError(f"Invalid SQL identifier: {name!r}")
        self.db = db
        self._table = table(table_name, column(id_column))
        self._id = self._table.c[id_column]

    async def exists(self, parent_id: str) -> bool:
        result = await self.db.execute(
            select(literal(1)).select_from(self._table).where(self._id == parent_id).limit(1)
        )
        return result.first() is not None
