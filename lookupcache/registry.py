"""Owner of every InternCache in a process.

Create one registry at startup, register the declared lookup tables, and
pass it (or individual caches) to the code that needs lookups. Closing the
registry releases the store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lookupcache.cache import InternCache
from lookupcache.config import AppConfig
from lookupcache.exceptions import ConfigurationError
from lookupcache.models import CacheStats, LookupTable
from lookupcache.store.base import LookupStore
from lookupcache.store.sqlalchemy_store import SQLAlchemyLookupStore
from lookupcache.tables import load_tables

logger = logging.getLogger(__name__)


class LookupRegistry:
    """One InternCache per declared lookup table, sharing a single store."""

    def __init__(
        self,
        store: LookupStore,
        tables: Iterable[LookupTable] = (),
        size_warning: int | None = None,
    ):
        self.store = store
        self.size_warning = size_warning
        self._caches: dict[str, InternCache] = {}
        for table in tables:
            self.register(table)

    @classmethod
    def from_config(cls, config: AppConfig) -> LookupRegistry:
        """Build a database-backed registry from application config.

        Raises:
            ConfigurationError: If the table declarations cannot be loaded
        """
        tables = load_tables(config.tables_config_path)
        store = SQLAlchemyLookupStore.from_config(config.db)
        return cls(store, tables, size_warning=config.cache.size_warning)

    def register(self, table: LookupTable) -> InternCache:
        """Register ``table`` and return its cache (idempotent per declaration)."""
        existing = self._caches.get(table.name)
        if existing is not None:
            if existing.table != table:
                raise ConfigurationError(
                    f"Lookup table '{table.name}' is already registered with a different declaration"
                )
            return existing

        cache = InternCache(table, self.store, size_warning=self.size_warning)
        self._caches[table.name] = cache
        logger.debug(f"Registered lookup table '{table.name}'")
        return cache

    def cache(self, table_name: str) -> InternCache:
        """Return the cache for ``table_name``.

        Raises:
            KeyError: If no such table is registered
        """
        try:
            return self._caches[table_name]
        except KeyError:
            raise KeyError(f"Unknown lookup table '{table_name}'") from None

    def __getitem__(self, table_name: str) -> InternCache:
        return self.cache(table_name)

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._caches

    @property
    def tables(self) -> list[LookupTable]:
        return [cache.table for cache in self._caches.values()]

    def stats(self) -> list[CacheStats]:
        return [cache.stats for cache in self._caches.values()]

    async def preload_all(self) -> int:
        """Warm every registered cache; returns the total number of entries loaded."""
        total = 0
        for cache in self._caches.values():
            total += await cache.preload()
        return total

    async def close(self) -> None:
        for cache in self._caches.values():
            cache.clear()
        await self.store.close()
