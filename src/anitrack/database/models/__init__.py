"""Database ORM models."""

from .show import EpisodeORM, ShowORM

__all__ = [
    "ShowORM",
    "EpisodeORM",
]
