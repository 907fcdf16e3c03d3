"""Catalog stores: flat snapshot file or relational database."""

from ..core.config import CatalogConfig
from .base import CatalogStore
from .snapshot import SnapshotCatalogStore
from .sql import SqlCatalogStore


def create_catalog(config: CatalogConfig) -> CatalogStore:
    """Create the configured catalog store (not yet opened)."""
    if config.backend == "sqlite":
        return SqlCatalogStore(config.get_database_url(), echo=config.echo)
    return SnapshotCatalogStore(config.path)


__all__ = [
    "CatalogStore",
    "SnapshotCatalogStore",
    "SqlCatalogStore",
    "create_catalog",
]
