"""Lookup table storage backends."""

from lookupcache.store.base import LookupStore
from lookupcache.store.memory import InMemoryLookupStore
from lookupcache.store.sqlalchemy_store import SQLAlchemyLookupStore

__all__ = [
    "InMemoryLookupStore",
    "LookupStore",
    "SQLAlchemyLookupStore",
]
