from __future__ import annotations

import asyncio
from collections.abc import Iterable

from lookupcache.exceptions import DuplicateNameError
from lookupcache.models import LookupEntry, LookupTable
from lookupcache.store.base import LookupStore


class _TableRows:
    def __init__(self) -> None:
        self.by_id: dict[int, LookupEntry] = {}
        self.by_name: dict[str, LookupEntry] = {}
        self.next_id = 1


class InMemoryLookupStore(LookupStore):
    """Process-local store; enforces name uniqueness like a unique index would.

    ``latency`` makes every call yield to the event loop for that many seconds,
    which lets tests interleave concurrent callers the way a real database would.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._tables: dict[str, _TableRows] = {}
        self.latency = latency
        self.calls: list[tuple[str, str]] = []

    def _rows(self, table: LookupTable) -> _TableRows:
        return self._tables.setdefault(table.name, _TableRows())

    async def _io(self, operation: str, table: LookupTable) -> None:
        self.calls.append((operation, table.name))
        await asyncio.sleep(self.latency)

    def seed(self, table: LookupTable, entries: Iterable[tuple[int, str]]) -> None:
        """Insert pre-existing rows, as if created by another process."""
        rows = self._rows(table)
        for entry_id, name in entries:
            if name in rows.by_name or entry_id in rows.by_id:
                raise DuplicateNameError(table.name, name)
            entry = LookupEntry(id=entry_id, name=name)
            rows.by_id[entry_id] = entry
            rows.by_name[name] = entry
            rows.next_id = max(rows.next_id, entry_id + 1)

    async def find_by_name(self, table: LookupTable, name: str) -> LookupEntry | None:
        await self._io("find_by_name", table)
        return self._rows(table).by_name.get(name)

    async def find_by_id(self, table: LookupTable, entry_id: int) -> LookupEntry | None:
        await self._io("find_by_id", table)
        return self._rows(table).by_id.get(entry_id)

    async def create_with_unique_name(self, table: LookupTable, name: str) -> LookupEntry:
        await self._io("create", table)
        rows = self._rows(table)
        if name in rows.by_name:
            raise DuplicateNameError(table.name, name)

        entry = LookupEntry(id=rows.next_id, name=name)
        rows.next_id += 1
        rows.by_id[entry.id] = entry
        rows.by_name[name] = entry
        return entry

    async def all_entries(self, table: LookupTable) -> list[LookupEntry]:
        await self._io("all_entries", table)
        rows = self._rows(table)
        return [rows.by_id[entry_id] for entry_id in sorted(rows.by_id)]

    def count(self, table: LookupTable) -> int:
        return len(self._rows(table).by_id)

    def count_calls(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)
