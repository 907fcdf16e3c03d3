"""Services - classification, synchronization, progress tracking."""

from .classifier import classify
from .progress import advance, next_episode, update_watched
from .sync_worker import SyncWorker
from .synchronizer import LibrarySynchronizer, SyncReport

__all__ = [
    "classify",
    "advance",
    "next_episode",
    "update_watched",
    "LibrarySynchronizer",
    "SyncReport",
    "SyncWorker",
]
