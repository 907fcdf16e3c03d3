"""Library synchronization: reconcile show directories with the catalog."""

import asyncio
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import structlog

from ..core.config import LibraryConfig, SyncConfig
from ..core.errors import CatalogError, ClassificationError, ScanError
from ..models.episode import Episode
from ..models.show import EpisodeEntry, Show
from .classifier import classify
from .file_enumerator import enumerate_files, list_show_directories

if TYPE_CHECKING:
    from ..catalog.base import CatalogStore

logger = structlog.get_logger()

# Thread pool for blocking filesystem walks
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="library_scan")


@dataclass
class SyncReport:
    """Outcome of one synchronization pass."""

    shows_added: int = 0
    shows_scanned: int = 0
    shows_skipped: int = 0
    files_added: int = 0
    files_rejected: int = 0
    failed_roots: list[str] = field(default_factory=list)
    failed_shows: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0


@dataclass
class ShowScan:
    """Classified files of one show directory."""

    entries: list[EpisodeEntry]
    rejected: int = 0


class LibrarySynchronizer:
    """Walks library roots, classifies video files and merges them into the
    catalog.

    Shows are never removed and episode maps only grow. Each show is
    synchronized under its catalog lock; different shows are walked
    concurrently.
    """

    def __init__(
        self,
        store: "CatalogStore",
        library_config: LibraryConfig,
        sync_config: Optional[SyncConfig] = None,
    ):
        self.store = store
        self.library_config = library_config
        self.sync_config = sync_config or SyncConfig()

    async def synchronize(
        self, roots: Optional[list[str]] = None, force: Optional[bool] = None
    ) -> SyncReport:
        """Run one synchronization pass.

        Args:
            roots: Library roots, defaults to the configured roots
            force: Rewalk shows even if their directory is unchanged

        Returns:
            Report of what was added, skipped and failed
        """
        if roots is None:
            roots = self.library_config.roots
        if force is None:
            force = self.sync_config.force

        started = time.monotonic()
        report = SyncReport()
        semaphore = asyncio.Semaphore(max(1, self.sync_config.max_concurrent_scans))
        loop = asyncio.get_running_loop()

        seen: dict[str, str] = {}
        pending = []
        for root in roots:
            try:
                show_dirs = await loop.run_in_executor(_executor, list_show_directories, root)
            except ScanError as e:
                logger.error("root_unreadable", root=root, error=str(e))
                report.failed_roots.append(root)
                continue

            for name, path in show_dirs:
                if name in seen:
                    logger.warning("duplicate_show_directory", show=name, path=path, kept=seen[name])
                    continue
                seen[name] = path
                pending.append(self._sync_show(name, path, force, semaphore, report))

        await asyncio.gather(*pending)
        await self.store.save()

        report.duration_seconds = time.monotonic() - started
        logger.info(
            "library_synchronized",
            shows_added=report.shows_added,
            shows_scanned=report.shows_scanned,
            shows_skipped=report.shows_skipped,
            files_added=report.files_added,
            files_rejected=report.files_rejected,
            failed_roots=len(report.failed_roots),
            failed_shows=len(report.failed_shows),
            duration=round(report.duration_seconds, 3),
        )
        return report

    async def _sync_show(
        self,
        name: str,
        path: str,
        force: bool,
        semaphore: asyncio.Semaphore,
        report: SyncReport,
    ) -> None:
        async with semaphore, self.store.show_lock(name):
            try:
                show = await self.store.get_show(name)
                if show is None:
                    await self._add_show(name, path, report)
                elif force or await self._needs_rescan(show, path):
                    await self._rescan_show(show, path, report)
                else:
                    report.shows_skipped += 1
                    logger.debug("show_unchanged", show=name)
            except (CatalogError, OSError) as e:
                logger.error("show_sync_failed", show=name, path=path, error=str(e))
                report.failed_shows.append(name)

    async def _add_show(self, name: str, path: str, report: SyncReport) -> None:
        scanned_at = int(time.time())
        scan = await self._scan(path)

        show = Show(identifier=name, path=path)
        for entry in scan.entries:
            for file_path in entry.paths:
                show.merge_episode(entry.episode, file_path)
        show.sort_episodes()
        show.last_scanned = scanned_at

        await self.store.upsert_show(show)

        report.shows_added += 1
        report.files_added += show.file_count
        report.files_rejected += scan.rejected
        logger.info("show_added", show=name, episodes=len(show.episodes), files=show.file_count)

    async def _rescan_show(self, show: Show, path: str, report: SyncReport) -> None:
        scanned_at = int(time.time())
        scan = await self._scan(path)

        added = await self.store.insert_episode_entries(show.identifier, scan.entries, scanned_at)

        report.shows_scanned += 1
        report.files_added += added
        report.files_rejected += scan.rejected
        logger.info("show_scanned", show=show.identifier, files_added=added)

    async def _needs_rescan(self, show: Show, path: str) -> bool:
        """Check if the show directory changed since the last walk."""
        loop = asyncio.get_running_loop()
        stat = await loop.run_in_executor(_executor, os.stat, path)
        return stat.st_mtime > show.last_scanned

    async def _scan(self, path: str) -> ShowScan:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, self._scan_sync, path)

    def _scan_sync(self, path: str) -> ShowScan:
        """Walk and classify one show directory (runs in thread)."""
        buckets: dict[Episode, EpisodeEntry] = {}
        rejected = 0

        for file_path in enumerate_files(
            path,
            min_depth=self.library_config.min_depth,
            max_depth=self.library_config.max_depth,
            extensions=self.library_config.extensions,
        ):
            try:
                episode = classify(file_path)
            except ClassificationError as e:
                logger.warning("file_rejected", path=repr(file_path), error=str(e))
                rejected += 1
                continue

            entry = buckets.get(episode)
            if entry is None:
                buckets[episode] = EpisodeEntry(episode=episode, paths=[file_path])
            else:
                entry.paths.append(file_path)

        entries = sorted(buckets.values(), key=lambda entry: entry.episode.sort_key())
        return ShowScan(entries=entries, rejected=rejected)
