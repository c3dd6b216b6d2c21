"""Database layer for lookupcache with async SQLAlchemy."""

from lookupcache.db.connection import (
    create_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from lookupcache.db.schema import build_metadata, build_table

__all__ = [
    "build_metadata",
    "build_table",
    "create_engine",
    "create_session_factory",
    "init_db",
    "session_scope",
]
