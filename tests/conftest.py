from pathlib import Path

import pytest

import config
from db import database

ENV_OVERRIDES = (
    "FLASHDECK_REQUEST_RETENTION",
    "FLASHDECK_MAXIMUM_INTERVAL",
    "FLASHDECK_REVIEW_COUNT",
    "FLASHDECK_NEW_CARD_LIMIT",
    "FLASHDECK_BACKUP_KEEP",
    "FLASHDECK_BACKUP_DAILY",
    "FLASHDECK_LOG_LEVEL",
)


@pytest.fixture
def flashdeck_home(tmp_path, monkeypatch) -> Path:
    """Point config, database and backups at a throwaway ~/.flashdeck."""
    config_dir = tmp_path / ".flashdeck"
    config_dir.mkdir()
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "flashdeck.db")
    monkeypatch.setattr(database, "BACKUP_DIR", config_dir / "backups")
    return config_dir
