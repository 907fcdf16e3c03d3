"""Catalog store interface shared by the snapshot and SQL backends."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..core.errors import ShowNotFoundError
from ..models.episode import Episode
from ..models.show import EpisodeEntry, Show
from ..services import progress


def show_order_key(show: Show) -> tuple[int, str]:
    """Most recently watched first, never watched last, then by name."""
    return (-show.last_watched, show.identifier)


class CatalogStore(ABC):
    """Persisted mapping of shows to their episode maps and progress.

    Writers of a show's episode map or progress take ``show_lock`` first so
    a synchronization pass and a watched update never interleave.
    """

    def __init__(self):
        # True when open() found no existing catalog
        self.created = False
        self._locks: dict[str, asyncio.Lock] = {}

    def show_lock(self, identifier: str) -> asyncio.Lock:
        """Get the writer lock for a show."""
        lock = self._locks.get(identifier)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[identifier] = lock
        return lock

    async def __aenter__(self) -> "CatalogStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abstractmethod
    async def open(self) -> None:
        """Load or initialize the catalog."""

    async def close(self) -> None:
        """Release resources."""

    async def save(self) -> None:
        """Persist pending changes."""

    @abstractmethod
    async def list_shows(self) -> list[str]:
        """Get show identifiers, most recently watched first."""

    @abstractmethod
    async def get_shows(self) -> list[Show]:
        """Get all shows in ``list_shows`` order."""

    @abstractmethod
    async def get_show(self, identifier: str) -> Optional[Show]:
        """Get a detached copy of a show, or None."""

    @abstractmethod
    async def upsert_show(self, show: Show) -> None:
        """Create a show together with its episode map, or update the
        progress and scan fields of an existing one."""

    @abstractmethod
    async def insert_episode_entries(
        self, identifier: str, entries: list[EpisodeEntry], scanned_at: int
    ) -> int:
        """Merge scanned entries into a show's episode map.

        Returns:
            Number of file paths added
        """

    async def require_show(self, identifier: str) -> Show:
        """Get a show or raise ShowNotFoundError."""
        show = await self.get_show(identifier)
        if show is None:
            raise ShowNotFoundError(identifier)
        return show

    async def get_episodes(self, identifier: str) -> list[EpisodeEntry]:
        show = await self.require_show(identifier)
        return show.episodes

    async def get_current_episode(self, identifier: str) -> Episode:
        show = await self.require_show(identifier)
        return show.current_episode

    async def set_current_episode(self, identifier: str, episode: Episode) -> Show:
        """Mark an episode watched.

        Raises:
            ShowNotFoundError: If the show is not in the catalog
            NotExistError: If the episode is not in the show's episode map;
                nothing is written
        """
        async with self.show_lock(identifier):
            show = await self.require_show(identifier)
            progress.update_watched(show, episode)
            await self.upsert_show(show)
            await self.save()
            return show

    async def advance(self, identifier: str) -> Optional[Episode]:
        """Mark the episode after the current one as watched.

        Returns:
            The new current episode, or None if there is no successor

        Raises:
            ShowNotFoundError: If the show is not in the catalog
        """
        async with self.show_lock(identifier):
            show = await self.require_show(identifier)
            episode = progress.advance(show)
            if episode is not None:
                await self.upsert_show(show)
                await self.save()
            return episode
