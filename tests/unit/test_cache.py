"""Unit tests for InternCache find-or-create behaviour.

Uses the in-memory store so that store round-trips can be counted and
concurrent callers can be interleaved deterministically.
"""

from __future__ import annotations

import asyncio

import pytest

from lookupcache.cache import InternCache
from lookupcache.exceptions import (
    DuplicateNameError,
    InvalidNameError,
    NotFoundError,
    StoreError,
)
from lookupcache.models import LookupEntry, LookupTable
from lookupcache.store.memory import InMemoryLookupStore


class TestIdFor:
    """Test name -> id resolution."""

    @pytest.mark.asyncio
    async def test_example_sequence(self, cache: InternCache, memory_store, car_types):
        """Sports -> 1, Compact -> 2, name_for(1) -> Sports, Sports -> 1 again."""
        assert await cache.id_for("Sports") == 1
        assert await cache.id_for("Compact") == 2
        assert await cache.name_for(1) == "Sports"
        assert await cache.id_for("Sports") == 1

        assert memory_store.count(car_types) == 2
        assert memory_store.count_calls("create") == 2

    @pytest.mark.asyncio
    async def test_distinct_names_get_distinct_ids(self, cache: InternCache):
        names = ["Sports", "Compact", "SUV", "Van", "sports"]
        ids = [await cache.id_for(name) for name in names]

        assert len(set(ids)) == len(names)

    @pytest.mark.asyncio
    async def test_repeat_lookup_is_idempotent_and_skips_store(
        self, cache: InternCache, memory_store: InMemoryLookupStore
    ):
        first = await cache.id_for("Sports")
        calls_after_first = len(memory_store.calls)

        assert await cache.id_for("Sports") == first
        assert await cache.id_for("Sports") == first
        assert len(memory_store.calls) == calls_after_first

    @pytest.mark.asyncio
    async def test_existing_row_is_found_not_created(
        self, cache: InternCache, memory_store: InMemoryLookupStore, car_types: LookupTable
    ):
        memory_store.seed(car_types, [(7, "Coupe")])

        assert await cache.id_for("Coupe") == 7
        assert memory_store.count_calls("create") == 0
        assert cache.stats.creations == 0

    @pytest.mark.asyncio
    async def test_round_trip(self, cache: InternCache):
        entry_id = await cache.id_for("Roadster")

        assert await cache.name_for(entry_id) == "Roadster"
        assert await cache.id_for(await cache.name_for(entry_id)) == entry_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", None, 42])
    async def test_invalid_names_rejected(self, cache: InternCache, name):
        with pytest.raises(InvalidNameError):
            await cache.id_for(name)

    @pytest.mark.asyncio
    async def test_overlong_name_rejected(self, memory_store: InMemoryLookupStore):
        cache = InternCache(LookupTable(name="colors", name_max_length=5), memory_store)

        with pytest.raises(InvalidNameError):
            await cache.id_for("magenta")
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_whitespace_is_significant(self, cache: InternCache):
        assert await cache.id_for("Sports") != await cache.id_for(" Sports")

    @pytest.mark.asyncio
    async def test_ids_for_preserves_order(self, cache: InternCache, memory_store):
        ids = await cache.ids_for(["Van", "SUV", "Van"])

        assert ids == [1, 2, 1]
        assert memory_store.count_calls("create") == 2


class TestNameFor:
    """Test id -> name resolution."""

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self, cache: InternCache):
        with pytest.raises(NotFoundError) as exc_info:
            await cache.name_for(99)

        assert exc_info.value.entry_id == 99
        assert "car_types" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_not_found_is_a_key_error(self, cache: InternCache):
        with pytest.raises(KeyError):
            await cache.name_for(12)

    @pytest.mark.asyncio
    async def test_lazy_loads_id_missing_from_cache(
        self, cache: InternCache, memory_store: InMemoryLookupStore, car_types: LookupTable
    ):
        memory_store.seed(car_types, [(3, "Hatchback")])

        assert await cache.name_for(3) == "Hatchback"
        # Both directions are now cached
        assert "Hatchback" in cache
        assert 3 in cache
        calls = len(memory_store.calls)
        assert await cache.id_for("Hatchback") == 3
        assert len(memory_store.calls) == calls

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entry_id", ["1", 1.0, True])
    async def test_non_integer_ids_rejected(self, cache: InternCache, entry_id):
        with pytest.raises(TypeError):
            await cache.name_for(entry_id)


class TestInvalidate:
    """Test cache maintenance hooks."""

    @pytest.mark.asyncio
    async def test_invalidate_by_name_removes_both_directions(self, cache: InternCache):
        entry_id = await cache.id_for("Sports")

        assert cache.invalidate("Sports") is True
        assert "Sports" not in cache
        assert entry_id not in cache
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_invalidate_by_id_removes_both_directions(self, cache: InternCache):
        entry_id = await cache.id_for("Sports")

        assert cache.invalidate(entry_id) is True
        assert "Sports" not in cache
        assert entry_id not in cache

    @pytest.mark.asyncio
    async def test_invalidate_does_not_touch_store(
        self, cache: InternCache, memory_store: InMemoryLookupStore, car_types: LookupTable
    ):
        entry_id = await cache.id_for("Sports")
        cache.invalidate("Sports")

        assert memory_store.count(car_types) == 1
        # Re-resolving finds the persisted row instead of creating another
        assert await cache.id_for("Sports") == entry_id
        assert memory_store.count(car_types) == 1

    def test_invalidate_unknown_returns_false(self, cache: InternCache):
        assert cache.invalidate("nope") is False
        assert cache.invalidate(5) is False

    @pytest.mark.asyncio
    async def test_clear_empties_cache(self, cache: InternCache):
        await cache.ids_for(["a", "b"])
        cache.clear()

        assert len(cache) == 0


class TestPreload:
    @pytest.mark.asyncio
    async def test_preload_warms_every_entry(
        self, cache: InternCache, memory_store: InMemoryLookupStore, car_types: LookupTable
    ):
        memory_store.seed(car_types, [(1, "Sports"), (2, "Compact")])

        assert await cache.preload() == 2
        calls = len(memory_store.calls)
        assert await cache.name_for(2) == "Compact"
        assert await cache.id_for("Sports") == 1
        assert len(memory_store.calls) == calls

    @pytest.mark.asyncio
    async def test_size_warning_logged_once(self, memory_store, car_types, caplog):
        cache = InternCache(car_types, memory_store, size_warning=2)

        with caplog.at_level("WARNING", logger="lookupcache.cache"):
            await cache.ids_for(["a", "b", "c", "d"])

        warnings = [r for r in caplog.records if "never evict" in r.getMessage()]
        assert len(warnings) == 1


class TestConcurrency:
    """Concurrent callers racing on the same unseen name."""

    @pytest.mark.asyncio
    async def test_concurrent_id_for_creates_one_row(self, car_types: LookupTable):
        store = InMemoryLookupStore()
        cache = InternCache(car_types, store)

        ids = await asyncio.gather(*(cache.id_for("X") for _ in range(10)))

        assert set(ids) == {1}
        assert store.count(car_types) == 1
        # Every caller missed and tried to create; all but one recovered
        assert cache.stats.creations == 1
        assert cache.stats.races_recovered == 9

    @pytest.mark.asyncio
    async def test_independent_caches_share_one_row(self, car_types: LookupTable):
        """Two processes (two caches) over the same table agree on the id."""
        store = InMemoryLookupStore()
        caches = [InternCache(car_types, store) for _ in range(4)]

        ids = await asyncio.gather(*(c.id_for("Sports") for c in caches for _ in range(3)))

        assert len(set(ids)) == 1
        assert store.count(car_types) == 1
        for c in caches:
            assert await c.name_for(ids[0]) == "Sports"

    @pytest.mark.asyncio
    async def test_mixed_names_stay_consistent(self, car_types: LookupTable):
        store = InMemoryLookupStore()
        cache = InternCache(car_types, store)
        names = ["Sports", "Compact", "SUV"] * 5

        ids = await asyncio.gather(*(cache.id_for(n) for n in names))

        by_name = dict(zip(names, ids))
        assert len(set(by_name.values())) == 3
        assert store.count(car_types) == 3
        for name, entry_id in by_name.items():
            assert await cache.name_for(entry_id) == name


class _FlakyStore(InMemoryLookupStore):
    """Store whose reads or creates can be made to misbehave."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.phantom_duplicates = False

    async def find_by_name(self, table, name):
        if self.fail_reads:
            raise StoreError("connection refused")
        return await super().find_by_name(table, name)

    async def create_with_unique_name(self, table, name):
        if self.phantom_duplicates:
            raise DuplicateNameError(table.name, name)
        return await super().create_with_unique_name(table, name)


class TestFailures:
    @pytest.mark.asyncio
    async def test_store_error_propagates(self, car_types: LookupTable):
        store = _FlakyStore()
        store.fail_reads = True
        cache = InternCache(car_types, store)

        with pytest.raises(StoreError, match="connection refused"):
            await cache.id_for("Sports")
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_duplicate_without_readable_row_is_store_error(self, car_types: LookupTable):
        store = _FlakyStore()
        store.phantom_duplicates = True
        cache = InternCache(car_types, store)

        with pytest.raises(StoreError):
            await cache.id_for("Sports")

    @pytest.mark.asyncio
    async def test_duplicate_name_never_escapes(self, car_types: LookupTable):
        """Row created by another process between our read and our insert."""
        store = InMemoryLookupStore()
        cache = InternCache(car_types, store)

        original = store.find_by_name

        async def stale_find(table, name):
            # First read misses; another process inserts before we create
            store.find_by_name = original
            store.seed(table, [(41, name)])
            return None

        store.find_by_name = stale_find

        assert await cache.id_for("Sports") == 41
        assert cache.stats.races_recovered == 1


class TestStoreDrift:
    @pytest.mark.asyncio
    async def test_remembering_reused_id_drops_stale_pair(self, cache: InternCache):
        await cache.id_for("Sports")  # id 1

        # Store renamed id 1 out-of-band; the new pair replaces the old one
        await cache._remember(LookupEntry(id=1, name="Sport"))

        assert "Sports" not in cache
        assert await cache.name_for(1) == "Sport"
        assert len(cache) == 1
