import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from config import load_config
from utils.fsrs import parameters_from_config
from .schema import SCHEMA_SQL, SCHEMA_VERSION
from .store import DeckStore

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".flashdeck"
DB_PATH = CONFIG_DIR / "flashdeck.db"
BACKUP_DIR = CONFIG_DIR / "backups"
BACKUP_KEEP = 7

def init_db():
    """Initialize the database by creating tables if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        ensure_schema_version(conn)
        conn.commit()
    run_daily_backup()

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        logger.info("Schema version %s -> %s", current, SCHEMA_VERSION)
        set_schema_version(conn, SCHEMA_VERSION)

def get_store(conn: sqlite3.Connection, config: Optional[dict] = None) -> DeckStore:
    """DeckStore bound to ``conn`` using the configured scheduler parameters."""
    config = config or load_config()
    return DeckStore(conn, parameters_from_config(config.get("scheduler")))

def create_backup_document() -> str:
    """Export the whole application state as a backup JSON document."""
    if not DB_PATH.exists():
        raise FileNotFoundError("flashdeck.db not found")
    with get_conn() as conn:
        return DeckStore(conn).export_app_state()

def create_backup_file(destination: Path) -> None:
    """Write a backup JSON document to the given destination."""
    document = create_backup_document()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(document, encoding="utf-8")

def backup_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")

def run_daily_backup() -> None:
    """Write a daily rolling backup of all decks and prune old files."""
    backup_cfg = load_config()["backup"]
    if not backup_cfg.get("daily", True) or not DB_PATH.exists():
        return
    keep = max(int(backup_cfg.get("keep", BACKUP_KEEP)), 1)
    BACKUP_DIR.mkdir(parents=True, exist_ok=True)
    today = date.today()
    existing = sorted(BACKUP_DIR.glob("backup-*.json"), key=lambda path: path.stat().st_mtime, reverse=True)
    if existing:
        latest_date = date.fromtimestamp(existing[0].stat().st_mtime)
        if latest_date == today:
            return
    backup_path = BACKUP_DIR / f"backup-{backup_timestamp()}.json"
    create_backup_file(backup_path)
    logger.info("Wrote daily backup %s", backup_path)
    existing = sorted(BACKUP_DIR.glob("backup-*.json"), key=lambda path: path.stat().st_mtime, reverse=True)
    for old_backup in existing[keep:]:
        old_backup.unlink(missing_ok=True)

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()

def get_deck_store():
    """FastAPI dependency that yields a DeckStore over a fresh connection."""
    with get_conn() as conn:
        yield get_store(conn)
