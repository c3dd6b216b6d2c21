"""Name <-> id intern cache for one lookup table.

The cache keeps two dicts (``name -> id`` and ``id -> name``) that always
describe the same set of persisted entries. Misses go to the store; unseen
names are created on the fly. Entries are never evicted.

Concurrency:
    Store calls run outside the cache lock, so two callers (or two processes)
    may both try to create the same name. The store's unique constraint picks
    a winner and the loser re-reads the winner's row. Both dicts are updated
    together under a single asyncio.Lock so a pair is never half-visible.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from lookupcache.exceptions import DuplicateNameError, InvalidNameError, NotFoundError, StoreError
from lookupcache.models import CacheStats, LookupEntry, LookupTable
from lookupcache.store.base import LookupStore

logger = logging.getLogger(__name__)


class InternCache:
    """Find-or-create cache over a single lookup table."""

    def __init__(self, table: LookupTable, store: LookupStore, size_warning: int | None = None):
        """Initialize cache.

        Args:
            table: Declaration of the backing lookup table
            store: Store holding the persisted entries
            size_warning: Log a warning once the cache holds this many entries
        """
        self.table = table
        self.store = store
        self.size_warning = size_warning
        self._name_to_id: dict[str, int] = {}
        self._id_to_name: dict[int, str] = {}
        self._lock = asyncio.Lock()
        self._stats = CacheStats(table=table.name)
        self._warned = False

    def __len__(self) -> int:
        return len(self._name_to_id)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._name_to_id
        if isinstance(key, int) and not isinstance(key, bool):
            return key in self._id_to_name
        return False

    def __repr__(self) -> str:
        return f"InternCache(table={self.table.name!r}, size={len(self)})"

    @property
    def stats(self) -> CacheStats:
        return self._stats.model_copy(update={"size": len(self)})

    def _validate_name(self, name: object) -> str:
        if not isinstance(name, str) or not name:
            raise InvalidNameError(f"Lookup names must be non-empty strings, got {name!r}")
        if len(name) > self.table.name_max_length:
            raise InvalidNameError(
                f"Name exceeds {self.table.name_max_length} characters for '{self.table.name}'"
            )
        return name

    async def _remember(self, entry: LookupEntry) -> None:
        async with self._lock:
            # An id re-used for a different name means the store changed
            # out-of-band; drop the stale pair so both directions stay paired.
            stale_name = self._id_to_name.get(entry.id)
            if stale_name is not None and stale_name != entry.name:
                del self._name_to_id[stale_name]
            stale_id = self._name_to_id.get(entry.name)
            if stale_id is not None and stale_id != entry.id:
                del self._id_to_name[stale_id]

            self._name_to_id[entry.name] = entry.id
            self._id_to_name[entry.id] = entry.name

        if self.size_warning and not self._warned and len(self) >= self.size_warning:
            self._warned = True
            logger.warning(
                f"Lookup cache for '{self.table.name}' holds {len(self)} entries; "
                "caches never evict, check that names are not unbounded"
            )

    async def id_for(self, name: str) -> int:
        """Return the id for ``name``, creating the entry if it does not exist.

        Raises:
            InvalidNameError: If ``name`` is not a non-empty string
            StoreError: If the store fails
        """
        name = self._validate_name(name)

        entry_id = self._name_to_id.get(name)
        if entry_id is not None:
            self._stats.hits += 1
            return entry_id

        self._stats.misses += 1
        entry = await self.store.find_by_name(self.table, name)
        if entry is None:
            entry = await self._create(name)

        await self._remember(entry)
        return entry.id

    async def _create(self, name: str) -> LookupEntry:
        try:
            entry = await self.store.create_with_unique_name(self.table, name)
        except DuplicateNameError:
            self._stats.races_recovered += 1
            logger.debug(f"Lost creation race for {name!r} in '{self.table.name}', re-reading")
            entry = await self.store.find_by_name(self.table, name)
            if entry is None:
                raise StoreError(
                    f"Store reported {name!r} as duplicate in '{self.table.name}' "
                    "but no such entry could be read back"
                )
            return entry

        self._stats.creations += 1
        return entry

    async def ids_for(self, names: Iterable[str]) -> list[int]:
        """Resolve ``names`` in order; repeated names hit the store once."""
        return [await self.id_for(name) for name in names]

    async def name_for(self, entry_id: int) -> str:
        """Return the name for ``entry_id``.

        Raises:
            NotFoundError: If no entry with ``entry_id`` is persisted
            StoreError: If the store fails
        """
        if not isinstance(entry_id, int) or isinstance(entry_id, bool):
            raise TypeError(f"Lookup ids must be integers, got {type(entry_id).__name__}")

        name = self._id_to_name.get(entry_id)
        if name is not None:
            self._stats.hits += 1
            return name

        self._stats.misses += 1
        entry = await self.store.find_by_id(self.table, entry_id)
        if entry is None:
            raise NotFoundError(self.table.name, entry_id)

        await self._remember(entry)
        return entry.name

    def invalidate(self, name_or_id: str | int) -> bool:
        """Forget one cached pair without touching the store.

        Returns:
            True if a pair was removed
        """
        # Synchronous: no await between the two deletions, so no reader can
        # interleave with a half-removed pair.
        if isinstance(name_or_id, str):
            entry_id = self._name_to_id.pop(name_or_id, None)
            if entry_id is None:
                return False
            self._id_to_name.pop(entry_id, None)
            return True

        name = self._id_to_name.pop(name_or_id, None)
        if name is None:
            return False
        self._name_to_id.pop(name, None)
        return True

    def clear(self) -> None:
        """Forget every cached pair."""
        self._name_to_id.clear()
        self._id_to_name.clear()
        self._warned = False

    async def preload(self) -> int:
        """Load every persisted entry into the cache.

        Returns:
            Number of entries loaded
        """
        entries = await self.store.all_entries(self.table)
        for entry in entries:
            await self._remember(entry)
        logger.info(f"Preloaded {len(entries)} entries for '{self.table.name}'")
        return len(entries)
