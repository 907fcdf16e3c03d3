"""Tests for configuration loading."""

from anitrack.core.config import Settings


def test_default_settings():
    """Test that default settings load correctly."""
    settings = Settings()

    assert settings.library.roots == []
    assert settings.library.extensions == ["mkv", "mp4", "ts"]
    assert settings.catalog.backend == "snapshot"
    assert settings.catalog.get_database_url().startswith("sqlite+aiosqlite:///")
    assert settings.sync.interval_seconds == 900
    assert settings.logging.level == "INFO"


def test_settings_from_env(monkeypatch):
    """Test loading settings from environment variables."""
    monkeypatch.setenv("ANITRACK_SYNC__INTERVAL_SECONDS", "60")
    monkeypatch.setenv("ANITRACK_CATALOG__BACKEND", "sqlite")
    monkeypatch.setenv("ANITRACK_LOGGING__LEVEL", "DEBUG")

    settings = Settings()

    assert settings.sync.interval_seconds == 60
    assert settings.catalog.backend == "sqlite"
    assert settings.logging.level == "DEBUG"


def test_settings_from_yaml(tmp_path):
    """Test loading settings from a YAML file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "library:\n"
        "  roots: [/srv/anime, /mnt/more]\n"
        "  extensions: [.MKV, avi]\n"
        "catalog:\n"
        "  backend: sqlite\n"
        "  database_url: sqlite+aiosqlite:///tmp/catalog.db\n"
    )

    settings = Settings.from_yaml(config_file)

    assert settings.library.roots == ["/srv/anime", "/mnt/more"]
    assert settings.library.extensions == ["mkv", "avi"]
    assert settings.catalog.get_database_url() == "sqlite+aiosqlite:///tmp/catalog.db"


def test_empty_yaml_gives_defaults(tmp_path):
    """Test an empty config file falls back to defaults."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")

    assert Settings.from_yaml(config_file).sync.max_concurrent_scans == 4
