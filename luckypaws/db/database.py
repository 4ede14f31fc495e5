"""
Engine and sessions for the game store.

Every deck mutation is a short read-modify-write transaction. On SQLite,
concurrent writers queue on the database file lock, so connections get a
busy timeout instead of failing straight away with "database is locked".
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from luckypaws.config import Settings, settings
from luckypaws.models.db import Base


def engine_options(config: Settings) -> dict[str, Any]:
    """Keyword arguments for create_async_engine, per backend."""
    options: dict[str, Any] = {"echo": config.debug}
    if config.database_url.startswith("sqlite"):
        options["connect_args"] = {"timeout": config.sqlite_busy_timeout_seconds}
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings))

# Committed game documents stay readable after the session closes.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session dependency for the readiness check; rolls back on database errors."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the games and snapshots tables if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
