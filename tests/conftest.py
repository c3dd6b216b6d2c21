"""Pytest configuration and fixtures for lookupcache tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lookupcache.cache import InternCache
from lookupcache.config import reset_config
from lookupcache.models import LookupTable
from lookupcache.store.memory import InMemoryLookupStore


@pytest.fixture
def car_types() -> LookupTable:
    """Lookup table backing the car_type attribute."""
    return LookupTable(name="car_types")


@pytest.fixture
def memory_store() -> InMemoryLookupStore:
    """Empty in-memory store."""
    return InMemoryLookupStore()


@pytest.fixture
def cache(car_types: LookupTable, memory_store: InMemoryLookupStore) -> InternCache:
    """Cache over an empty car_types table."""
    return InternCache(car_types, memory_store)


@pytest.fixture
def tables_file(tmp_path: Path) -> Path:
    """YAML file declaring two lookup tables."""
    path = tmp_path / "lookup_tables.yaml"
    path.write_text(
        "lookup_tables:\n"
        "  - attribute: car_type\n"
        "  - name: fuel_kinds\n"
        "    name_column: label\n"
        "    name_max_length: 64\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path: Path):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'lookups.db'}")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("LOOKUP_TABLES_FILE", raising=False)
    for name in ("LOOKUP_PRELOAD", "LOOKUP_SIZE_WARNING", "JSON_LOGS", "DB_ECHO"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
