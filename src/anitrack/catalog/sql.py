"""Relational catalog backed by SQLAlchemy."""

from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..core.errors import ShowNotFoundError, StoreError
from ..database.session import create_engine, create_session_factory, init_db
from ..models.show import EpisodeEntry, Show
from ..repositories.show_repository import ShowRepository
from .base import CatalogStore

logger = structlog.get_logger()


class SqlCatalogStore(CatalogStore):
    """Catalog stored in an ``anime`` and an ``episode`` table.

    Every write runs in its own session and commits once, so a new show row
    and its episode rows become visible together.
    """

    def __init__(self, database_url: str, echo: bool = False):
        super().__init__()
        self.database_url = database_url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def open(self) -> None:
        """Create the engine and tables.

        Raises:
            StoreError: If the database cannot be opened
        """
        try:
            self._engine = create_engine(self.database_url, echo=self.echo)
            self._session_factory = create_session_factory(self._engine)
            self.created = await init_db(self._engine)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Cannot open catalog database: {e}") from e

        logger.info("database_opened", url=self.database_url, created=self.created)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        if self._session_factory is None:
            raise StoreError("Catalog database is not open")
        return self._session_factory()

    async def list_shows(self) -> list[str]:
        try:
            async with self._get_session() as session:
                repo = ShowRepository(session)
                return await repo.list_identifiers()
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read shows: {e}") from e

    async def get_shows(self) -> list[Show]:
        try:
            async with self._get_session() as session:
                repo = ShowRepository(session)
                shows = await repo.get_all_with_episodes()
                return [repo.to_pydantic(show_orm) for show_orm in shows]
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read shows: {e}") from e

    async def get_show(self, identifier: str) -> Optional[Show]:
        try:
            async with self._get_session() as session:
                repo = ShowRepository(session)
                show_orm = await repo.get_with_episodes(identifier)
                return repo.to_pydantic(show_orm) if show_orm else None
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read show {identifier}: {e}") from e

    async def upsert_show(self, show: Show) -> None:
        try:
            async with self._get_session() as session:
                repo = ShowRepository(session)
                if await repo.update_progress(show) is None:
                    await repo.create_from_pydantic(show)
                    logger.debug(
                        "show_created", show=show.identifier, files=show.file_count
                    )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot write show {show.identifier}: {e}") from e

    async def insert_episode_entries(
        self, identifier: str, entries: list[EpisodeEntry], scanned_at: int
    ) -> int:
        try:
            async with self._get_session() as session:
                repo = ShowRepository(session)
                added = await repo.add_episode_entries(identifier, entries, scanned_at)
                if added is None:
                    raise ShowNotFoundError(identifier)
                await session.commit()
                return added
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot write episodes of {identifier}: {e}") from e
