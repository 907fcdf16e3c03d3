"""Custom exceptions for anitrack."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from anitrack.models.episode import Episode


class AnitrackError(Exception):
    """Base exception for all anitrack errors."""

    pass


class ClassificationError(AnitrackError):
    """A path could not be turned into an episode."""

    pass


class InvalidFileError(ClassificationError):
    """Path has no file-name component."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Invalid path to episode: {path!r}")


class Utf8Error(ClassificationError):
    """File name cannot be represented as a text string."""

    def __init__(self, path: object):
        self.path = path
        super().__init__(f"Unable to convert file name to UTF-8 string: {path!r}")


class CatalogError(AnitrackError):
    """Catalog store errors."""

    pass


class NotExistError(CatalogError):
    """A watched-episode update referenced an episode absent from the show."""

    def __init__(self, show: str, episode: "Episode"):
        self.show = show
        self.episode = episode
        super().__init__(f'{episode} does not exist in "{show}"')


class ShowNotFoundError(CatalogError):
    """Show identifier is not in the catalog."""

    def __init__(self, show: str):
        self.show = show
        super().__init__(f'Show "{show}" is not in the catalog')


class CorruptSnapshotError(CatalogError):
    """Persisted snapshot could not be deserialized."""

    pass


class StoreError(CatalogError):
    """Underlying storage or filesystem failure."""

    pass


class ScanError(AnitrackError):
    """A library root could not be read."""

    pass
