"""Repository layer for database operations."""

from .show_repository import ShowRepository

__all__ = [
    "ShowRepository",
]
