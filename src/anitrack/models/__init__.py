"""Pydantic domain models."""

from .episode import Episode, EpisodeKind
from .show import EpisodeEntry, Library, Show

__all__ = [
    "Episode",
    "EpisodeKind",
    "EpisodeEntry",
    "Library",
    "Show",
]
