"""Database connection management and schema initialization."""

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "trainer.db"

SCHEMA_SQL = """
-- Per-item learner statistics, one row per (mode, item)
CREATE TABLE IF NOT EXISTS item_stats (
    mode TEXT NOT NULL,
    item_id TEXT NOT NULL,
    trial_count INTEGER NOT NULL DEFAULT 0,
    correct_count INTEGER NOT NULL DEFAULT 0,
    automaticity REAL NOT NULL DEFAULT 0.0,
    last_seen TEXT,
    ewma_ms REAL,
    recent_times TEXT NOT NULL DEFAULT '[]',  -- JSON array of ms values
    PRIMARY KEY (mode, item_id)
);

CREATE INDEX IF NOT EXISTS idx_item_stats_mode ON item_stats(mode);

-- Named per-mode values (motor baseline, scope)
CREATE TABLE IF NOT EXISTS mode_values (
    mode TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,  -- JSON encoded
    PRIMARY KEY (mode, key)
);
"""


def get_connection(db_path: Path = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Get a database connection with appropriate settings.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A configured sqlite3 Connection object.
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Initialize the database schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    # Ensure the parent directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()
