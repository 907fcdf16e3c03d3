"""Depth-bounded enumeration of video files under a directory."""

import os
from typing import Iterable, Iterator

import structlog

from ..core.errors import ScanError
from .classifier import is_video_file

logger = structlog.get_logger()

DEFAULT_EXTENSIONS = ("mkv", "mp4", "ts")


def enumerate_files(
    root: str,
    min_depth: int = 1,
    max_depth: int = 5,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> Iterator[str]:
    """Lazily yield video files under ``root``.

    Depth is counted from ``root``: a file directly inside it has depth 1.
    Entries that cannot be read are logged and skipped. Directory symlinks
    are not followed.

    Args:
        root: Directory to walk
        min_depth: Shallowest depth to yield
        max_depth: Deepest depth to descend to
        extensions: Whitelisted extensions, without the dot

    Yields:
        File paths as strings
    """
    allowed = tuple(extensions)
    yield from _walk(root, 1, min_depth, max_depth, allowed)


def _walk(
    directory: str,
    depth: int,
    min_depth: int,
    max_depth: int,
    extensions: tuple[str, ...],
) -> Iterator[str]:
    if depth > max_depth:
        return

    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning("directory_unreadable", path=directory, error=str(e))
        return

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                yield from _walk(entry.path, depth + 1, min_depth, max_depth, extensions)
            elif entry.is_file() and depth >= min_depth:
                if is_video_file(entry.path, extensions):
                    yield entry.path
        except OSError as e:
            logger.warning("entry_unreadable", path=entry.path, error=str(e))


def list_show_directories(root: str) -> list[tuple[str, str]]:
    """List the immediate subdirectories of a library root.

    Args:
        root: Library root directory

    Returns:
        (directory name, full path) pairs sorted by name

    Raises:
        ScanError: If the root itself cannot be read
    """
    try:
        with os.scandir(root) as it:
            entries = list(it)
    except OSError as e:
        raise ScanError(f"Cannot read library root {root}: {e}") from e

    shows = []
    for entry in entries:
        try:
            if entry.is_dir():
                shows.append((entry.name, entry.path))
        except OSError as e:
            logger.warning("entry_unreadable", path=entry.path, error=str(e))

    return sorted(shows)
