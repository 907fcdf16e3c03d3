"""Shared fixtures."""

import os
import time
from pathlib import Path

import pytest

from anitrack.catalog import SnapshotCatalogStore, SqlCatalogStore
from anitrack.models.episode import Episode
from anitrack.models.show import Show


def make_files(root: Path, *relpaths: str) -> list[Path]:
    """Create empty files under ``root``."""
    created = []
    for relpath in relpaths:
        path = root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
        created.append(path)
    return created


def set_mtime(path: Path, offset: float) -> None:
    """Move a path's mtime relative to now."""
    stamp = time.time() + offset
    os.utime(path, (stamp, stamp))


def make_show(identifier: str, *episodes: tuple[Episode, str], **fields) -> Show:
    show = Show(identifier=identifier, path=f"/library/{identifier}", **fields)
    for episode, path in episodes:
        show.merge_episode(episode, path)
    show.sort_episodes()
    return show


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    """Library root holding one show with a few releases."""
    root = tmp_path / "library"
    make_files(
        root / "Vinland Saga",
        "[sam] Vinland Saga - 02 [BD 1080p FLAC] [6696F95B].mkv",
        "[sam] Vinland Saga - 01 [BD 1080p FLAC] [1A2B3C4D].mkv",
        "extras/[Arid] Vinland Saga - Creditless OP [D04F5D1D].mkv",
        "notes.txt",
    )
    return root


@pytest.fixture(params=["snapshot", "sqlite"])
def catalog_factory(request, tmp_path: Path):
    """Factory for a catalog store of each backend, sharing one location."""

    def factory():
        if request.param == "snapshot":
            return SnapshotCatalogStore(str(tmp_path / "catalog.json"))
        return SqlCatalogStore(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")

    return factory
