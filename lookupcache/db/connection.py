"""Database connection and session management for lookupcache.

Engines and session factories are created explicitly and handed to the
store that owns them; nothing here is process-global.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterable
from contextlib import asynccontextmanager

from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from lookupcache.config import DBConfig
from lookupcache.db.schema import build_metadata
from lookupcache.exceptions import ConfigurationError
from lookupcache.models import LookupTable


def create_engine(db_config: DBConfig) -> AsyncEngine:
    """Create an async engine for ``db_config``.

    Returns:
        AsyncEngine: SQLAlchemy async engine

    Raises:
        ConfigurationError: If the database URL cannot be used
    """
    engine_kwargs = {"echo": db_config.echo}

    # SQLite doesn't support connection pooling parameters
    if "sqlite" not in db_config.url.lower():
        engine_kwargs.update({
            "pool_size": db_config.pool_size,
            "max_overflow": db_config.pool_max_overflow,
            "pool_timeout": db_config.pool_timeout,
            "pool_pre_ping": True,  # Verify connections before using
            "pool_recycle": 3600,  # Recycle connections after 1 hour
        })

    try:
        return create_async_engine(db_config.url, **engine_kwargs)
    except ArgumentError as e:
        # Unparseable URL or unknown dialect/driver
        raise ConfigurationError(f"Invalid DATABASE_URL {db_config.url!r}: {e}") from e


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    """Create a session factory bound to ``engine``."""
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
    )


@asynccontextmanager
async def session_scope(session_factory: sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Open a session, committing on success and rolling back on error.

    Usage:
        async with session_scope(factory) as session:
            await session.execute(stmt)

    Yields:
        AsyncSession: SQLAlchemy async session
    """
    session = session_factory()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: AsyncEngine, lookup_tables: Iterable[LookupTable]) -> None:
    """Create any declared lookup tables that do not exist yet.

    Note: Development convenience only; existing tables are left untouched.
    """
    metadata = build_metadata(lookup_tables)

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
