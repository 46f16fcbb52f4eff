"""Database engine, session factory and declarative base."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

import config


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE SET NULL unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = create_async_engine(
    config.settings.DATABASE_URL,
    echo=config.settings.SQL_ECHO,
    pool_pre_ping=not _is_sqlite(config.settings.DATABASE_URL),
)

if _is_sqlite(config.settings.DATABASE_URL):
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

# The url engine commits mid-request and keeps using entities afterwards
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    Yield one session per request.

    Services commit their own work; anything left uncommitted is rolled back on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Create missing tables (migrations remain the source of truth for indexes in production)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
