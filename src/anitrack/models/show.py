"""Show models for tracking episodes and watch progress."""

from typing import Optional

from pydantic import BaseModel, Field

from .episode import Episode


class EpisodeEntry(BaseModel):
    """One episode and every file found for it (duplicate releases)."""

    episode: Episode
    paths: list[str] = Field(default_factory=list)


class Show(BaseModel):
    """A tracked series, keyed by its top-level directory name."""

    identifier: str
    path: str = ""

    # Episode map, kept sorted by the episode order after every pass
    episodes: list[EpisodeEntry] = Field(default_factory=list)

    # Progress tracking
    current_episode: Episode = Field(default_factory=lambda: Episode.numbered(1, 1))
    last_watched: int = 0  # Unix seconds, 0 = never
    last_scanned: int = 0  # Unix seconds, 0 = never

    def get_entry(self, episode: Episode) -> Optional[EpisodeEntry]:
        """Get the bucket for an episode."""
        for entry in self.episodes:
            if entry.episode == episode:
                return entry
        return None

    def has_episode(self, episode: Episode) -> bool:
        return self.get_entry(episode) is not None

    def get_paths(self, episode: Episode) -> list[str]:
        entry = self.get_entry(episode)
        return list(entry.paths) if entry else []

    def episode_keys(self) -> list[Episode]:
        return [entry.episode for entry in self.episodes]

    def merge_episode(self, episode: Episode, path: str) -> bool:
        """Add a file to the episode map.

        Appends to the existing bucket or starts a new one. A path already
        present in the bucket is not added twice.

        Returns:
            True if the path was added
        """
        entry = self.get_entry(episode)
        if entry is None:
            self.episodes.append(EpisodeEntry(episode=episode, paths=[path]))
            return True
        if path in entry.paths:
            return False
        entry.paths.append(path)
        return True

    def sort_episodes(self) -> None:
        """Restore episode order after a batch of merges."""
        self.episodes.sort(key=lambda entry: entry.episode.sort_key())

    @property
    def file_count(self) -> int:
        return sum(len(entry.paths) for entry in self.episodes)


class Library(BaseModel):
    """All tracked shows, keyed by identifier."""

    shows: dict[str, Show] = Field(default_factory=dict)
