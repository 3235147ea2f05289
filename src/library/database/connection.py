"""
Database connection management
"""

import os
import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..config import settings
from ..logging import get_logger

logger = get_logger(__name__)

# Sync driver prefix -> async driver prefix
ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}

# Global shared connection pools
_engine = None
_async_engine = None
_async_session_local = None
_initialized = False
_init_lock = threading.Lock()  # Protect initialization from race conditions


def get_database_url() -> str:
    """Get database URL, checking the environment first so tests can override it."""
    return os.getenv("LIBRARY_DATABASE_URL") or settings.database_url


def to_async_url(db_url: str) -> str | None:
    """Map a sync database URL onto its asyncio driver, or None if unsupported."""
    for sync_prefix, async_prefix in ASYNC_DRIVERS.items():
        if db_url.startswith(sync_prefix):
            return db_url.replace(sync_prefix, async_prefix, 1)
    return None


def _engine_options(db_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.sql_echo}
    # SQLite pools do not take sizing arguments
    if db_url.startswith("postgresql"):
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    return options


def reset_database():
    """Reset database connections (for tests)."""
    global _engine, _async_engine, _async_session_local, _initialized
    _engine = None
    _async_engine = None
    _async_session_local = None
    _initialized = False


async def check_database_connection() -> tuple[bool, str | None]:
    """
    Run a trivial query against the async engine.

    Returns:
        tuple: (success: bool, error_message: str | None)
    """
    if _async_engine is None:
        return False, "Database engine not initialized"

    try:
        async with _async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True, None
    except Exception as e:
        error_str = str(e)
        if "Connection refused" in error_str or "could not connect" in error_str:
            return False, f"Cannot connect to database server: {error_str}"
        if "password authentication failed" in error_str:
            return False, f"Database authentication failed: {error_str}"
        return False, f"Database connection error ({type(e).__name__}): {error_str}"


def init_database(database_url: str | None = None, force_reinit: bool = False):
    """Initialize shared database connection pools.

    Thread-safe initialization using a lock to prevent race conditions
    when multiple threads attempt to initialize simultaneously.
    """
    global _engine, _async_engine, _async_session_local, _initialized

    # Fast path: already initialized, no lock needed
    if _initialized and not force_reinit and database_url is None:
        return

    with _init_lock:
        # Double-check after acquiring lock (another thread may have initialized)
        if _initialized and not force_reinit and database_url is None:
            return

        db_url = database_url or get_database_url()

        _engine = create_engine(db_url, **_engine_options(db_url))

        async_db_url = to_async_url(db_url)
        if async_db_url is not None:
            _async_engine = create_async_engine(async_db_url, **_engine_options(db_url))
            _async_session_local = async_sessionmaker(
                _async_engine,
                class_=AsyncSession,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )

        _initialized = True
        logger.info("Database initialized", database_url=_engine.url.render_as_string())


def get_engine():
    """Get the shared SQLAlchemy engine."""
    if _engine is None:
        init_database()
    return _engine


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session (async) from shared pool.

    Commits when the block exits normally and rolls back on error.
    """
    if _async_session_local is None:
        init_database()

    if _async_session_local is None:
        raise RuntimeError("Async database not available (PostgreSQL or SQLite required)")

    async with _async_session_local() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def create_schema() -> None:
    """Create all tables that do not exist yet (development and tests; production uses Alembic)."""
    from ..dbmodels import Base

    Base.metadata.create_all(get_engine())
    logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))
