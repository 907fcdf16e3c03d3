"""Background catalog refresh."""

import asyncio
from typing import Optional

import structlog

from .synchronizer import LibrarySynchronizer, SyncReport

logger = structlog.get_logger()


class SyncWorker:
    """Keeps the catalog in step with the library directories.

    A freshly created catalog is built before ``start()`` returns, so an
    empty catalog is never served as final. Later passes run in the
    background while readers see the previous state of each show until its
    pass completes.
    """

    def __init__(self, synchronizer: LibrarySynchronizer, interval_seconds: int = 900):
        self.synchronizer = synchronizer
        self.interval_seconds = interval_seconds

        self.initial_sync_done = asyncio.Event()
        self.last_report: Optional[SyncReport] = None

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Build the catalog if it is new, then start refreshing."""
        if self._running:
            return

        self._running = True
        refresh_now = True

        if self.synchronizer.store.created:
            logger.info("initial_catalog_build")
            await self.run_once()
            refresh_now = False

        self.initial_sync_done.set()
        self._task = asyncio.create_task(self._refresh_loop(refresh_now))
        logger.info("sync_worker_started", interval=self.interval_seconds)

    async def stop(self) -> None:
        """Stop refreshing and wait for the loop to exit."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("sync_worker_stopped")

    async def run_once(self) -> SyncReport:
        """Run a single synchronization pass."""
        self.last_report = await self.synchronizer.synchronize()
        return self.last_report

    async def _refresh_loop(self, refresh_now: bool) -> None:
        """Periodic refresh loop; ``interval_seconds <= 0`` runs at most one pass."""
        while self._running:
            try:
                if refresh_now:
                    await self.run_once()
                refresh_now = True

                if self.interval_seconds <= 0:
                    break
                await asyncio.sleep(self.interval_seconds)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("sync_loop_error", error=str(e))
                if self.interval_seconds <= 0:
                    break
                await asyncio.sleep(self.interval_seconds)
