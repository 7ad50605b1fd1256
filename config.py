import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".flashdeck"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

def load_config() -> Dict[str, Any]:
    """Load config from ~/.flashdeck/config.toml, copy example if missing, apply env overrides."""
    load_dotenv()  # .env may set FLASHDECK_* overrides
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    scheduler_cfg = config.get("scheduler", {})
    config["scheduler"] = {
        **scheduler_cfg,
        "request_retention": float(os.getenv(
            "FLASHDECK_REQUEST_RETENTION", scheduler_cfg.get("request_retention", 0.9)
        )),
        "maximum_interval": int(os.getenv(
            "FLASHDECK_MAXIMUM_INTERVAL", scheduler_cfg.get("maximum_interval", 36500)
        )),
    }
    review_cfg = config.get("review", {})
    config["review"] = {
        "review_count": int(os.getenv("FLASHDECK_REVIEW_COUNT", review_cfg.get("review_count", 20))),
        "new_card_limit": int(os.getenv("FLASHDECK_NEW_CARD_LIMIT", review_cfg.get("new_card_limit", 10))),
    }
    backup_cfg = config.get("backup", {})
    config["backup"] = {
        "keep": int(os.getenv("FLASHDECK_BACKUP_KEEP", backup_cfg.get("keep", 7))),
        "daily": os.getenv(
            "FLASHDECK_BACKUP_DAILY", str(backup_cfg.get("daily", True))
        ).lower() == "true",
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("FLASHDECK_LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('review', 'review_count')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
