import json
import sqlite3
from typing import Any, Optional

from utils.errors import MalformedStorageDocument


def read_document(conn: sqlite3.Connection, key: str) -> Optional[Any]:
    """Return the decoded JSON stored under ``key``, or None when absent."""
    cursor = conn.cursor()
    cursor.execute("SELECT value FROM documents WHERE key = ?", (key,))
    row = cursor.fetchone()
    if not row:
        return None
    try:
        return json.loads(row[0])
    except (TypeError, ValueError) as exc:
        raise MalformedStorageDocument(key, str(exc)) from exc


def write_document(conn: sqlite3.Connection, key: str, value: Any) -> None:
    """Replace the whole document stored under ``key``. Caller commits."""
    conn.execute(
        """
        INSERT INTO documents (key, value, updated_at)
        VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            updated_at = excluded.updated_at
        """,
        (key, json.dumps(value, ensure_ascii=False)),
    )


def delete_document(conn: sqlite3.Connection, key: str) -> None:
    conn.execute("DELETE FROM documents WHERE key = ?", (key,))
