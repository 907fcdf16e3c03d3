"""Flat-file catalog: the whole library as one JSON document."""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from ..core.errors import CorruptSnapshotError, ShowNotFoundError, StoreError
from ..models.show import EpisodeEntry, Library, Show
from .base import CatalogStore, show_order_key

logger = structlog.get_logger()


def _read_snapshot(path: Path) -> Optional[bytes]:
    """Read the snapshot file (runs in thread); None if there is none."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _write_snapshot(path: Path, data: str) -> None:
    """Write the snapshot atomically via temp file + rename (runs in thread)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class SnapshotCatalogStore(CatalogStore):
    """Catalog held in memory and rewritten in full on every save."""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path).expanduser()
        self.library = Library()
        self._save_lock = asyncio.Lock()

    async def open(self) -> None:
        """Load the snapshot, or start an empty library if there is none.

        Raises:
            CorruptSnapshotError: If the file exists but cannot be parsed
            StoreError: If the file cannot be read
        """
        try:
            data = await asyncio.to_thread(_read_snapshot, self.path)
        except OSError as e:
            raise StoreError(f"Cannot read snapshot {self.path}: {e}") from e

        if data is None:
            self.library = Library()
            self.created = True
            logger.info("snapshot_created", path=str(self.path))
            return

        try:
            self.library = Library.model_validate_json(data)
        except ValidationError as e:
            raise CorruptSnapshotError(f"Snapshot {self.path} is unreadable: {e}") from e

        self.created = False
        logger.info("snapshot_loaded", path=str(self.path), shows=len(self.library.shows))

    async def save(self) -> None:
        """Write the library atomically off the event loop.

        Saves run one at a time so an older state never replaces a newer one.

        Raises:
            StoreError: If the snapshot cannot be written
        """
        async with self._save_lock:
            data = self.library.model_dump_json()
            try:
                await asyncio.to_thread(_write_snapshot, self.path, data)
            except OSError as e:
                raise StoreError(f"Cannot write snapshot {self.path}: {e}") from e

        logger.debug("snapshot_saved", path=str(self.path))

    async def list_shows(self) -> list[str]:
        return [show.identifier for show in await self.get_shows()]

    async def get_shows(self) -> list[Show]:
        shows = sorted(self.library.shows.values(), key=show_order_key)
        return [show.model_copy(deep=True) for show in shows]

    async def get_show(self, identifier: str) -> Optional[Show]:
        show = self.library.shows.get(identifier)
        return show.model_copy(deep=True) if show else None

    async def upsert_show(self, show: Show) -> None:
        existing = self.library.shows.get(show.identifier)
        if existing is None:
            new_show = show.model_copy(deep=True)
            new_show.sort_episodes()
            self.library.shows[show.identifier] = new_show
            return

        existing.path = show.path
        existing.current_episode = show.current_episode
        existing.last_watched = show.last_watched
        existing.last_scanned = show.last_scanned

    async def insert_episode_entries(
        self, identifier: str, entries: list[EpisodeEntry], scanned_at: int
    ) -> int:
        existing = self.library.shows.get(identifier)
        if existing is None:
            raise ShowNotFoundError(identifier)

        # Merge into a copy so readers never see a half-merged map
        updated = existing.model_copy(deep=True)
        added = 0
        for entry in entries:
            for path in entry.paths:
                if updated.merge_episode(entry.episode, path):
                    added += 1
        updated.sort_episodes()
        updated.last_scanned = scanned_at
        self.library.shows[identifier] = updated
        return added
