"""Show repository for database operations."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database.models.show import EpisodeORM, ShowORM
from ..models.episode import Episode, EpisodeKind
from ..models.show import EpisodeEntry, Show
from .base import BaseRepository

# Bound parameters per IN (...) query
PATH_QUERY_CHUNK = 500


def _episode_from_row(row: EpisodeORM) -> Episode:
    if row.special is not None:
        return Episode.special(row.special)
    return Episode.numbered(row.season, row.episode)


def _episode_row(identifier: str, episode: Episode, path: str, position: int) -> EpisodeORM:
    if episode.kind is EpisodeKind.SPECIAL:
        return EpisodeORM(
            path=path, anime=identifier, special=episode.filename, position=position
        )
    return EpisodeORM(
        path=path,
        anime=identifier,
        season=episode.season,
        episode=episode.episode,
        position=position,
    )


def _set_current_episode(show_orm: ShowORM, episode: Episode) -> None:
    if episode.kind is EpisodeKind.SPECIAL:
        show_orm.current_special = episode.filename
        show_orm.current_season = None
        show_orm.current_episode = None
    else:
        show_orm.current_special = None
        show_orm.current_season = episode.season
        show_orm.current_episode = episode.episode


def _current_episode(show_orm: ShowORM) -> Episode:
    if show_orm.current_special is not None:
        return Episode.special(show_orm.current_special)
    if show_orm.current_season is not None and show_orm.current_episode is not None:
        return Episode.numbered(show_orm.current_season, show_orm.current_episode)
    return Episode.numbered(1, 1)


class ShowRepository(BaseRepository[ShowORM]):
    """Repository for show database operations."""

    def __init__(self, session: AsyncSession):
        """Initialize show repository."""
        super().__init__(ShowORM, session)

    async def create_from_pydantic(self, show: Show) -> ShowORM:
        """
        Create a show and all of its episode rows.

        Args:
            show: Pydantic Show model

        Returns:
            ORM show instance
        """
        show_orm = ShowORM(
            anime=show.identifier,
            path=show.path,
            last_watched=show.last_watched,
            last_scanned=show.last_scanned,
        )
        _set_current_episode(show_orm, show.current_episode)

        position = 0
        for entry in show.episodes:
            for path in entry.paths:
                show_orm.episodes.append(
                    _episode_row(show.identifier, entry.episode, path, position)
                )
                position += 1

        return await self.create(show_orm)

    async def get_with_episodes(self, identifier: str) -> Optional[ShowORM]:
        """
        Get show with episodes eagerly loaded.

        Args:
            identifier: Show identifier

        Returns:
            Show ORM with episodes or None
        """
        result = await self.session.execute(
            select(ShowORM)
            .where(ShowORM.anime == identifier)
            .options(selectinload(ShowORM.episodes))
        )
        return result.scalar_one_or_none()

    async def get_all_with_episodes(self) -> list[ShowORM]:
        """Get all shows, most recently watched first."""
        result = await self.session.execute(
            select(ShowORM)
            .options(selectinload(ShowORM.episodes))
            .order_by(ShowORM.last_watched.desc(), ShowORM.anime)
        )
        return list(result.scalars().all())

    async def list_identifiers(self) -> list[str]:
        """Get show identifiers, most recently watched first."""
        result = await self.session.execute(
            select(ShowORM.anime).order_by(ShowORM.last_watched.desc(), ShowORM.anime)
        )
        return list(result.scalars().all())

    def to_pydantic(self, show_orm: ShowORM) -> Show:
        """
        Convert ORM model to Pydantic model.

        Args:
            show_orm: ORM show instance with episodes loaded

        Returns:
            Pydantic Show model with a sorted episode map
        """
        show = Show(
            identifier=show_orm.anime,
            path=show_orm.path or "",
            current_episode=_current_episode(show_orm),
            last_watched=show_orm.last_watched or 0,
            last_scanned=show_orm.last_scanned or 0,
        )
        for row in sorted(show_orm.episodes, key=lambda r: r.position):
            show.merge_episode(_episode_from_row(row), row.path)
        show.sort_episodes()
        return show

    async def update_progress(self, show: Show) -> Optional[ShowORM]:
        """
        Update progress and scan fields of an existing show.

        Args:
            show: Show carrying the new values

        Returns:
            Updated show or None if not found
        """
        show_orm = await self.get(show.identifier)
        if not show_orm:
            return None

        show_orm.path = show.path
        _set_current_episode(show_orm, show.current_episode)
        show_orm.last_watched = show.last_watched
        show_orm.last_scanned = show.last_scanned
        return await self.update(show_orm)

    async def add_episode_entries(
        self, identifier: str, entries: list[EpisodeEntry], scanned_at: int
    ) -> Optional[int]:
        """
        Insert episode rows for paths not yet in the catalog.

        Args:
            identifier: Show identifier
            entries: Scanned episode entries
            scanned_at: Scan timestamp to record

        Returns:
            Number of rows added, or None if the show is not found
        """
        show_orm = await self.get(identifier)
        if not show_orm:
            return None

        paths = [path for entry in entries for path in entry.paths]
        existing = await self._existing_paths(paths)

        result = await self.session.execute(
            select(func.max(EpisodeORM.position)).where(EpisodeORM.anime == identifier)
        )
        last_position = result.scalar_one_or_none()
        position = 0 if last_position is None else last_position + 1

        added = 0
        for entry in entries:
            for path in entry.paths:
                if path in existing:
                    continue
                self.session.add(_episode_row(identifier, entry.episode, path, position))
                existing.add(path)
                position += 1
                added += 1

        show_orm.last_scanned = scanned_at
        await self.session.flush()
        return added

    async def _existing_paths(self, paths: list[str]) -> set[str]:
        existing: set[str] = set()
        for start in range(0, len(paths), PATH_QUERY_CHUNK):
            chunk = paths[start:start + PATH_QUERY_CHUNK]
            result = await self.session.execute(
                select(EpisodeORM.path).where(EpisodeORM.path.in_(chunk))
            )
            existing.update(result.scalars().all())
        return existing
