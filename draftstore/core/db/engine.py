"""
Database Engine Configuration for FastAPI.

- Async operations via aiosqlite (or any async driver in DB_URL)
- One session per request, committed on success and rolled back on error
- SQLite connections tuned for concurrent writers (WAL + busy_timeout)
"""

import logging
from typing import AsyncGenerator
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from draftstore.core.config import config as settings

logger = logging.getLogger(__name__)


def _get_engine_options(database_url: str) -> dict:
    """
    Get engine options based on database type.
    SQLite requires special handling for async and concurrency.
    """
    is_sqlite = database_url.startswith("sqlite")

    options = {
        "echo": False,
        "future": True,
    }

    if is_sqlite:
        # aiosqlite connections are bound to their own thread; don't pool file databases
        if ":memory:" in database_url:
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        else:
            options["poolclass"] = NullPool
    elif not settings.is_production:
        options["poolclass"] = NullPool

    return options


def _configure_sqlite_connection(dbapi_connection, connection_record):
    """
    Configure SQLite connection for concurrent access.
    Called on every new connection to the database.

    - busy_timeout: wait up to 30s for the write lock instead of failing
    - WAL mode: readers don't block the writer
    - foreign_keys: enforce referential integrity
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine, registering SQLite pragmas when needed."""
    new_engine = create_async_engine(database_url, **_get_engine_options(database_url))

    if database_url.startswith("sqlite"):
        # For aiosqlite, we need to use the sync_engine's pool events
        @event.listens_for(new_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            _configure_sqlite_connection(dbapi_connection, connection_record)

    return new_engine


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,  # Manual control over flushing
    )


database_url = settings.database_url

engine = build_engine(database_url)

AsyncSessionLocal = build_sessionmaker(engine)


async def get_db_util() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency for FastAPI.

    Transaction handling:
    - Short transactions: commit as soon as the path operation returns
    - Rollback on any exception, including uniqueness violations
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create any missing tables. Alembic owns schema changes after that."""
    # Register every model on the metadata before create_all
    from draftstore.core.db.base import Base
    from draftstore.modules.drafts.models import Draft  # noqa: F401

    async with bind.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def check_database_connection(bind: AsyncEngine = engine) -> bool:
    """
    Verify database connection is working.
    Used by the health check.
    """
    try:
        async with bind.connect() as connection:
            result = await connection.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as exc:
        logger.warning(f"Database health check failed: {exc}")
        return False
