"""Main entry point for the anitrack command line."""

import asyncio
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from anitrack import __version__
from anitrack.catalog import CatalogStore, create_catalog
from anitrack.core.config import Settings
from anitrack.core.errors import AnitrackError, CatalogError, NotExistError, ShowNotFoundError
from anitrack.core.log import setup_logging
from anitrack.models.episode import Episode
from anitrack.services.progress import next_episode
from anitrack.services.sync_worker import SyncWorker
from anitrack.services.synchronizer import LibrarySynchronizer, SyncReport

app = typer.Typer(
    name="anitrack",
    help="anitrack - episodic media catalog and watch progress",
)
console = Console()
logger = structlog.get_logger()

T = TypeVar("T")

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to configuration file",
)
RootOption = typer.Option(
    None,
    "--root",
    "-r",
    help="Library root (repeatable, overrides configured roots)",
)


def find_config(config_path: Optional[Path]) -> Optional[Path]:
    """Find the configuration file to load, if any."""
    if config_path and config_path.exists():
        return config_path

    default_paths = [
        Path("config.yaml"),
        Path.home() / ".anitrack" / "config.yaml",
    ]

    for path in default_paths:
        if path.exists():
            return path
    return None


def _prepare(config: Optional[Path], roots: Optional[list[str]] = None) -> Settings:
    """Load settings from file or defaults and configure logging."""
    path = find_config(config)
    settings = Settings.from_yaml(path) if path else Settings()
    if roots:
        settings.library.roots = list(roots)
    setup_logging(settings.logging)

    if path is None:
        logger.debug("using_default_config")
    else:
        logger.debug("loading_config", path=str(path))
    return settings


async def _with_catalog(
    settings: Settings,
    action: Callable[[CatalogStore], Awaitable[T]],
    build_new: bool = True,
) -> T:
    """Open the catalog, build it first if it is new, and run ``action``."""
    store = create_catalog(settings.catalog)
    await store.open()
    try:
        if build_new and store.created:
            synchronizer = LibrarySynchronizer(store, settings.library, settings.sync)
            await synchronizer.synchronize()
        return await action(store)
    finally:
        await store.close()


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine, turning catalog failures into a clean exit."""
    try:
        return asyncio.run(coro)
    except (NotExistError, ShowNotFoundError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    except CatalogError as e:
        console.print(f"[red]Catalog error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except AnitrackError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _format_timestamp(timestamp: int) -> str:
    if not timestamp:
        return "never"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


def _print_report(report: SyncReport) -> None:
    console.print(
        f"[green]Synchronized[/green] in {report.duration_seconds:.2f}s: "
        f"{report.shows_added} new, {report.shows_scanned} rescanned, "
        f"{report.shows_skipped} unchanged, {report.files_added} files added"
    )
    if report.files_rejected:
        console.print(f"[yellow][!][/yellow] {report.files_rejected} files could not be classified")
    for root in report.failed_roots:
        console.print(f"[red][X][/red] Library root unreadable: {escape(root)}")
    for show in report.failed_shows:
        console.print(f"[red][X][/red] Show failed to synchronize: {escape(show)}")


@app.command()
def scan(
    config: Optional[Path] = ConfigOption,
    root: Optional[list[str]] = RootOption,
    force: bool = typer.Option(False, "--force", "-f", help="Rewalk unchanged shows"),
) -> None:
    """Synchronize the catalog with the library directories."""
    settings = _prepare(config, root)

    async def action(store: CatalogStore) -> SyncReport:
        synchronizer = LibrarySynchronizer(store, settings.library, settings.sync)
        return await synchronizer.synchronize(force=force or None)

    # The pass below builds a new catalog itself
    _print_report(_run(_with_catalog(settings, action, build_new=False)))


@app.command("list")
def list_shows(
    config: Optional[Path] = ConfigOption,
    root: Optional[list[str]] = RootOption,
) -> None:
    """List shows, most recently watched first."""
    settings = _prepare(config, root)
    shows = _run(_with_catalog(settings, lambda store: store.get_shows()))

    if not shows:
        console.print("[yellow]No shows in the catalog[/yellow]")
        return

    table = Table(title="Shows")
    table.add_column("Show")
    table.add_column("Current")
    table.add_column("Episodes", justify="right")
    table.add_column("Last watched")
    for show in shows:
        table.add_row(
            escape(show.identifier),
            escape(str(show.current_episode)),
            str(len(show.episodes)),
            _format_timestamp(show.last_watched),
        )
    console.print(table)


@app.command()
def show(
    name: str = typer.Argument(..., help="Show directory name"),
    config: Optional[Path] = ConfigOption,
    root: Optional[list[str]] = RootOption,
) -> None:
    """Show the episode map of one show."""
    settings = _prepare(config, root)
    record = _run(_with_catalog(settings, lambda store: store.require_show(name)))

    table = Table(title=escape(record.identifier))
    table.add_column("Episode")
    table.add_column("Files", justify="right")
    table.add_column("Paths")
    for entry in record.episodes:
        marker = " *" if entry.episode == record.current_episode else ""
        table.add_row(
            escape(f"{entry.episode}{marker}"),
            str(len(entry.paths)),
            escape("\n".join(entry.paths)),
        )
    console.print(table)


@app.command()
def watch(
    name: str = typer.Argument(..., help="Show directory name"),
    episode: str = typer.Argument(..., help="Episode, e.g. S01E05, 1x05, 5 or a special's file name"),
    config: Optional[Path] = ConfigOption,
    root: Optional[list[str]] = RootOption,
) -> None:
    """Mark an episode as watched."""
    settings = _prepare(config, root)
    target = Episode.parse(episode)
    _run(_with_catalog(settings, lambda store: store.set_current_episode(name, target)))
    console.print(f"[green][OK][/green] {escape(name)}: now at {escape(str(target))}")


@app.command("next")
def next_command(
    name: str = typer.Argument(..., help="Show directory name"),
    mark: bool = typer.Option(False, "--mark", "-m", help="Mark the next episode watched"),
    config: Optional[Path] = ConfigOption,
    root: Optional[list[str]] = RootOption,
) -> None:
    """Print the next episode to watch."""
    settings = _prepare(config, root)

    async def action(store: CatalogStore) -> tuple[Optional[Episode], list[str]]:
        record = await store.require_show(name)
        episode = await store.advance(name) if mark else next_episode(record)
        return episode, record.get_paths(episode) if episode else []

    episode, paths = _run(_with_catalog(settings, action))
    if episode is None:
        console.print(f"[yellow]No next episode for {escape(name)}[/yellow]")
        raise typer.Exit(code=1)

    console.print(escape(str(episode)))
    for path in paths:
        console.print(f"  {escape(path)}")


async def run_worker(settings: Settings) -> None:
    """Run the background refresh loop until interrupted."""
    store = create_catalog(settings.catalog)
    await store.open()

    synchronizer = LibrarySynchronizer(store, settings.library, settings.sync)
    worker = SyncWorker(synchronizer, settings.sync.interval_seconds)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
        loop.add_signal_handler(signal.SIGTERM, stop_event.set)

    try:
        await worker.start()
        console.print(f"[green]Catalog ready[/green] ({len(await store.list_shows())} shows)")
        await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await worker.stop()
        await store.close()


@app.command()
def run(
    config: Optional[Path] = ConfigOption,
    root: Optional[list[str]] = RootOption,
) -> None:
    """Keep the catalog synchronized in the background."""
    settings = _prepare(config, root)
    _run(run_worker(settings))


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"anitrack v{__version__}")


if __name__ == "__main__":
    app()
