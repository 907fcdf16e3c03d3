"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path.home() / ".anitrack"


class LibraryConfig(BaseModel):
    """Library roots and file filtering."""

    roots: list[str] = Field(default_factory=list)
    extensions: list[str] = Field(default_factory=lambda: ["mkv", "mp4", "ts"])
    min_depth: int = 1  # Relative to the show directory
    max_depth: int = 5

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, value: list[str]) -> list[str]:
        """Store extensions lowercase and without the leading dot."""
        return [ext.lower().lstrip(".") for ext in value]


class CatalogConfig(BaseModel):
    """Catalog persistence settings."""

    backend: Literal["snapshot", "sqlite"] = "snapshot"
    path: str = str(DATA_DIR / "catalog.json")  # Snapshot file
    database_url: Optional[str] = None  # Default: sqlite+aiosqlite under DATA_DIR
    echo: bool = False  # Enable SQL query logging for debugging

    def get_database_url(self) -> str:
        """Get the configured database URL or the default SQLite file."""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{DATA_DIR / 'catalog.db'}"


class SyncConfig(BaseModel):
    """Synchronization pass settings."""

    interval_seconds: int = 900  # 0 disables periodic refresh
    max_concurrent_scans: int = 4
    force: bool = False  # Ignore directory mtimes and rewalk every show


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: Optional[str] = None
    max_size: int = 10  # MB
    backup_count: int = 5
    json_format: bool = False  # Render structlog events as JSON lines


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_prefix="ANITRACK_",
        env_nested_delimiter="__",
    )

    library: LibraryConfig = Field(default_factory=LibraryConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        import yaml

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls(**data) if data else cls()
