"""Contract every lookup store must implement.

A store owns the persisted rows of one or more lookup tables. Stores are
expected to enforce name uniqueness per table and to report a lost creation
race as ``DuplicateNameError`` so that callers can re-read the winner's row.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lookupcache.models import LookupEntry, LookupTable


class LookupStore(ABC):
    """Abstract base class for lookup table storage."""

    @abstractmethod
    async def find_by_name(self, table: LookupTable, name: str) -> LookupEntry | None:
        """Return the entry named ``name`` or None."""

    @abstractmethod
    async def find_by_id(self, table: LookupTable, entry_id: int) -> LookupEntry | None:
        """Return the entry with ``entry_id`` or None."""

    @abstractmethod
    async def create_with_unique_name(self, table: LookupTable, name: str) -> LookupEntry:
        """Persist a new entry; the store assigns its id.

        Raises:
            DuplicateNameError: If an entry with ``name`` already exists
            StoreError: If the store call fails for any other reason
        """

    @abstractmethod
    async def all_entries(self, table: LookupTable) -> list[LookupEntry]:
        """Return every persisted entry ordered by id."""

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
