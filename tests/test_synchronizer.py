"""Tests for library synchronization."""

import pytest
from sqlalchemy.exc import OperationalError

from anitrack.catalog import SnapshotCatalogStore, SqlCatalogStore
from anitrack.core.config import LibraryConfig, SyncConfig
from anitrack.core.errors import InvalidFileError, StoreError
from anitrack.models.episode import Episode
from anitrack.repositories.show_repository import ShowRepository
from anitrack.services import synchronizer as synchronizer_module
from anitrack.services.synchronizer import LibrarySynchronizer

from .conftest import make_files, set_mtime

OP_NAME = "[Arid] Vinland Saga - Creditless OP [D04F5D1D].mkv"


async def open_store(tmp_path) -> SnapshotCatalogStore:
    store = SnapshotCatalogStore(str(tmp_path / "catalog.json"))
    await store.open()
    return store


def make_synchronizer(store, *roots, **sync_fields) -> LibrarySynchronizer:
    return LibrarySynchronizer(
        store,
        LibraryConfig(roots=[str(root) for root in roots]),
        SyncConfig(**sync_fields),
    )


@pytest.mark.asyncio
async def test_discovers_new_show(tmp_path, library_root):
    """Test a new show directory is added with a sorted episode map."""
    store = await open_store(tmp_path)
    report = await make_synchronizer(store, library_root).synchronize()

    assert report.shows_added == 1
    assert report.files_added == 3
    assert await store.list_shows() == ["Vinland Saga"]

    show = await store.get_show("Vinland Saga")
    assert show.path == str(library_root / "Vinland Saga")
    assert show.episode_keys() == [
        Episode.numbered(1, 1),
        Episode.numbered(1, 2),
        Episode.special(OP_NAME),
    ]
    assert show.current_episode == Episode.numbered(1, 1)
    assert show.last_scanned > 0


@pytest.mark.asyncio
async def test_saves_snapshot(tmp_path, library_root):
    """Test a pass persists the catalog."""
    store = await open_store(tmp_path)
    await make_synchronizer(store, library_root).synchronize()

    reopened = await open_store(tmp_path)
    assert not reopened.created
    assert await reopened.list_shows() == ["Vinland Saga"]


@pytest.mark.asyncio
async def test_unchanged_show_is_skipped(tmp_path, library_root):
    """Test a show whose directory did not change is not walked again."""
    store = await open_store(tmp_path)
    synchronizer = make_synchronizer(store, library_root)
    await synchronizer.synchronize()
    set_mtime(library_root / "Vinland Saga", -3600)

    report = await synchronizer.synchronize()

    assert report.shows_skipped == 1
    assert report.shows_scanned == 0


@pytest.mark.asyncio
async def test_changed_show_is_rescanned(tmp_path, library_root):
    """Test new files of a changed show are merged into its map."""
    store = await open_store(tmp_path)
    synchronizer = make_synchronizer(store, library_root)
    await synchronizer.synchronize()

    make_files(
        library_root / "Vinland Saga",
        "[sam] Vinland Saga - 03 [BD 1080p FLAC] [0F0F0F0F].mkv",
        "[other] Vinland Saga - 01 [720p].mkv",
    )
    set_mtime(library_root / "Vinland Saga", 3600)

    report = await synchronizer.synchronize()

    assert report.shows_scanned == 1
    assert report.files_added == 2
    show = await store.get_show("Vinland Saga")
    assert show.episode_keys()[:3] == [
        Episode.numbered(1, 1),
        Episode.numbered(1, 2),
        Episode.numbered(1, 3),
    ]
    assert len(show.get_paths(Episode.numbered(1, 1))) == 2


@pytest.mark.asyncio
async def test_repeated_pass_is_idempotent(tmp_path, library_root):
    """Test walking the same unchanged directory twice gives the same map."""
    store = await open_store(tmp_path)
    synchronizer = make_synchronizer(store, library_root)
    await synchronizer.synchronize()
    first = await store.get_episodes("Vinland Saga")

    report = await synchronizer.synchronize(force=True)

    assert report.shows_scanned == 1
    assert report.files_added == 0
    assert await store.get_episodes("Vinland Saga") == first


@pytest.mark.asyncio
async def test_vanished_files_are_kept(tmp_path, library_root):
    """Test files removed from disk stay in the catalog."""
    store = await open_store(tmp_path)
    synchronizer = make_synchronizer(store, library_root)
    await synchronizer.synchronize()

    for path in (library_root / "Vinland Saga").glob("*- 02 *.mkv"):
        path.unlink()
    await synchronizer.synchronize(force=True)

    show = await store.get_show("Vinland Saga")
    assert show.has_episode(Episode.numbered(1, 2))


@pytest.mark.asyncio
async def test_unreadable_root_does_not_stop_others(tmp_path, library_root):
    """Test a missing root is reported and other roots still synchronize."""
    store = await open_store(tmp_path)
    missing = tmp_path / "missing"

    report = await make_synchronizer(store, missing, library_root).synchronize()

    assert report.failed_roots == [str(missing)]
    assert await store.list_shows() == ["Vinland Saga"]


@pytest.mark.asyncio
async def test_duplicate_show_name_first_root_wins(tmp_path, library_root):
    """Test a show name seen under two roots is taken from the first."""
    other_root = tmp_path / "other"
    make_files(other_root / "Vinland Saga", "Vinland Saga - 05.mkv")
    store = await open_store(tmp_path)

    await make_synchronizer(store, library_root, other_root).synchronize()

    show = await store.get_show("Vinland Saga")
    assert show.path == str(library_root / "Vinland Saga")
    assert not show.has_episode(Episode.numbered(1, 5))


@pytest.mark.asyncio
async def test_rejected_file_is_skipped(tmp_path, library_root, monkeypatch):
    """Test a file failing classification is counted and the scan continues."""
    real_classify = synchronizer_module.classify

    def classify(path):
        if "- 02 " in path:
            raise InvalidFileError(path)
        return real_classify(path)

    monkeypatch.setattr(synchronizer_module, "classify", classify)
    store = await open_store(tmp_path)

    report = await make_synchronizer(store, library_root).synchronize()

    assert report.files_rejected == 1
    assert report.files_added == 2
    show = await store.get_show("Vinland Saga")
    assert not show.has_episode(Episode.numbered(1, 2))


@pytest.mark.asyncio
async def test_progress_survives_rescan(tmp_path, library_root):
    """Test a rescan does not reset watch progress."""
    store = await open_store(tmp_path)
    synchronizer = make_synchronizer(store, library_root)
    await synchronizer.synchronize()
    await store.set_current_episode("Vinland Saga", Episode.numbered(1, 2))

    await synchronizer.synchronize(force=True)

    show = await store.get_show("Vinland Saga")
    assert show.current_episode == Episode.numbered(1, 2)
    assert show.last_watched > 0


@pytest.mark.asyncio
async def test_discovers_new_show_on_each_backend(catalog_factory, library_root):
    """Test a pass builds the same catalog on both backends."""
    async with catalog_factory() as store:
        report = await make_synchronizer(store, library_root).synchronize()

        assert report.shows_added == 1
        assert report.files_added == 3
        show = await store.get_show("Vinland Saga")
        assert show.episode_keys() == [
            Episode.numbered(1, 1),
            Episode.numbered(1, 2),
            Episode.special(OP_NAME),
        ]


@pytest.mark.asyncio
async def test_database_read_failure_fails_only_that_show(tmp_path, monkeypatch):
    """Test a database error reading one show leaves the other shows synchronized."""
    root = tmp_path / "library"
    make_files(root, "Alpha/Alpha - 01.mkv", "Bravo/Bravo - 01.mkv")
    real_get = ShowRepository.get_with_episodes

    async def get_with_episodes(self, identifier):
        if identifier == "Alpha":
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))
        return await real_get(self, identifier)

    monkeypatch.setattr(ShowRepository, "get_with_episodes", get_with_episodes)

    async with SqlCatalogStore(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}") as store:
        report = await make_synchronizer(store, root).synchronize()

        assert report.failed_shows == ["Alpha"]
        assert report.shows_added == 1
        assert await store.list_shows() == ["Bravo"]


@pytest.mark.asyncio
async def test_database_read_failure_raises_store_error(tmp_path, monkeypatch):
    """Test SQL read errors surface as StoreError."""

    async def list_identifiers(self):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ShowRepository, "list_identifiers", list_identifiers)

    async with SqlCatalogStore(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}") as store:
        with pytest.raises(StoreError):
            await store.list_shows()
