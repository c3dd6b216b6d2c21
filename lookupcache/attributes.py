"""Read and write lookup-backed attributes on records.

A record referencing a lookup table stores only ``<attribute>_id``.
``LookupAttribute`` translates between that foreign key and the
human-readable name through an InternCache::

    car_type = LookupAttribute("car_type", registry["car_types"])
    await car_type.assign(car, "Sports")   # car.car_type_id = 1
    await car_type.read(car)               # "Sports"
"""

from __future__ import annotations

from typing import Any

from lookupcache.cache import InternCache


class LookupAttribute:
    """Lookup-backed attribute bound to one cache."""

    def __init__(self, attribute: str, cache: InternCache, foreign_key: str | None = None):
        self.attribute = attribute
        self.cache = cache
        self.foreign_key = foreign_key or f"{attribute}_id"

    def __repr__(self) -> str:
        return f"LookupAttribute({self.attribute!r} -> {self.cache.table.name}.{self.foreign_key})"

    async def assign(self, record: Any, name: str | None) -> int | None:
        """Point ``record`` at ``name``, creating the lookup entry if needed."""
        entry_id = await self.cache.id_for(name) if name is not None else None
        setattr(record, self.foreign_key, entry_id)
        return entry_id

    async def read(self, record: Any) -> str | None:
        """Return the name ``record`` points at, or None when unset."""
        entry_id = getattr(record, self.foreign_key, None)
        if entry_id is None:
            return None
        return await self.cache.name_for(entry_id)

    async def assign_many(self, records: list[Any], names: list[str | None]) -> None:
        if len(records) != len(names):
            raise ValueError("records and names must have the same length")
        for record, name in zip(records, names):
            await self.assign(record, name)
