"""Async SQLAlchemy implementation of the lookup store contract.

Every call runs in its own short transaction so that a failed insert never
poisons a session shared with other callers.
"""

from __future__ import annotations

import logging

from sqlalchemy import MetaData, Table, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from lookupcache.config import DBConfig
from lookupcache.db.connection import create_engine, create_session_factory, session_scope
from lookupcache.db.schema import build_table
from lookupcache.exceptions import DuplicateNameError, StoreError
from lookupcache.models import LookupEntry, LookupTable
from lookupcache.store.base import LookupStore

logger = logging.getLogger(__name__)


class SQLAlchemyLookupStore(LookupStore):
    """Lookup store backed by a relational database."""

    def __init__(self, engine: AsyncEngine, owns_engine: bool = False):
        """Initialize store.

        Args:
            engine: Async engine used for every store call
            owns_engine: Dispose the engine on close()
        """
        self.engine = engine
        self._owns_engine = owns_engine
        self._session_factory = create_session_factory(engine)
        self._metadata = MetaData()

    @classmethod
    def from_config(cls, db_config: DBConfig) -> SQLAlchemyLookupStore:
        return cls(create_engine(db_config), owns_engine=True)

    def _table(self, table: LookupTable) -> Table:
        return build_table(self._metadata, table)

    def _to_entry(self, table: LookupTable, row) -> LookupEntry:
        mapping = row._mapping
        return LookupEntry(id=mapping[table.id_column], name=mapping[table.name_column])

    async def _fetch_one(self, table: LookupTable, where) -> LookupEntry | None:
        sa_table = self._table(table)
        stmt = select(sa_table).where(where)
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(stmt)
                row = result.first()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Lookup query on '{table.name}' failed: {e}") from e

        return self._to_entry(table, row) if row is not None else None

    async def find_by_name(self, table: LookupTable, name: str) -> LookupEntry | None:
        sa_table = self._table(table)
        return await self._fetch_one(table, sa_table.c[table.name_column] == name)

    async def find_by_id(self, table: LookupTable, entry_id: int) -> LookupEntry | None:
        sa_table = self._table(table)
        return await self._fetch_one(table, sa_table.c[table.id_column] == entry_id)

    async def create_with_unique_name(self, table: LookupTable, name: str) -> LookupEntry:
        sa_table = self._table(table)
        stmt = insert(sa_table).values({table.name_column: name})
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(stmt)
                entry_id = result.inserted_primary_key[0]
        except IntegrityError as e:
            logger.debug(f"Insert of {name!r} into '{table.name}' lost a uniqueness race: {e}")
            raise DuplicateNameError(table.name, name) from e
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Insert into '{table.name}' failed: {e}") from e

        logger.info(f"Created lookup entry {table.name}[{entry_id}] = {name!r}")
        return LookupEntry(id=entry_id, name=name)

    async def all_entries(self, table: LookupTable) -> list[LookupEntry]:
        sa_table = self._table(table)
        stmt = select(sa_table).order_by(sa_table.c[table.id_column])
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(stmt)
                rows = result.all()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Loading '{table.name}' failed: {e}") from e

        return [self._to_entry(table, row) for row in rows]

    async def close(self) -> None:
        """Dispose the engine if this store created it."""
        if self._owns_engine:
            await self.engine.dispose()
