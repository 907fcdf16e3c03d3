"""Database engine and session management."""

import logging
from pathlib import Path

from sqlalchemy import inspect
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .base import Base

logger = logging.getLogger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine, making sure a SQLite file's directory exists.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log SQL statements

    Returns:
        AsyncEngine instance
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    return create_async_engine(database_url, echo=echo, future=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> bool:
    """
    Initialize database tables.

    Creates all tables defined in ORM models.

    Returns:
        True if the catalog tables did not exist before
    """
    async with engine.begin() as conn:
        # Import all models to register them with Base
        from .models import EpisodeORM, ShowORM  # noqa: F401

        existed = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table(ShowORM.__tablename__)
        )
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized successfully")
    return not existed
