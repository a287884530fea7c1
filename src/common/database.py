"""SQLite database utilities for the link rotator.

Provides connection management and table initialization for the
link analytics store.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .config import settings

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS link_analytics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    short_url TEXT NOT NULL UNIQUE,
    original_url TEXT NOT NULL,
    title TEXT DEFAULT '',
    marker TEXT NOT NULL DEFAULT 'none',
    subid TEXT,
    created_at TEXT NOT NULL,
    clicks INTEGER NOT NULL DEFAULT 0,
    last_updated TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_link_analytics_created ON link_analytics(created_at);
CREATE INDEX IF NOT EXISTS idx_link_analytics_marker ON link_analytics(marker);
"""


def get_connection(db_path: str | None = None) -> sqlite3.Connection:
    """Get a SQLite connection with row factory enabled."""
    path = db_path or settings.database.db_path
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db(db_path: str | None = None) -> None:
    """Create all tables if they don't exist."""
    conn = get_connection(db_path)
    try:
        conn.executescript(_CREATE_TABLES_SQL)
        conn.commit()
    finally:
        conn.close()
