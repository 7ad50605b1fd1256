# SQL schema for the FlashDeck document store

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Whole JSON documents keyed by a namespaced name (e.g. flashdeck.decks)
CREATE TABLE IF NOT EXISTS documents (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""
