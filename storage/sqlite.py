"""SQLite implementation of the ModeStore interface."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from .base import ModeStore
from .connection import get_connection, DEFAULT_DB_PATH
from errors import PersistenceUnavailableError
from models import ItemStat


class SQLiteModeStore(ModeStore):
    """SQLite implementation of ModeStore.

    Every write commits before returning. sqlite3 errors surface as
    PersistenceUnavailableError.
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        self.db_path = db_path

    def load_stats(self, mode: str) -> dict[str, ItemStat]:
        """Load every stored item statistic for a mode."""
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Cannot open {self.db_path}: {exc}") from exc
        try:
            cursor = conn.execute("SELECT * FROM item_stats WHERE mode = ?", (mode,))
            stats = {}
            for row in cursor.fetchall():
                stat = self._row_to_stat(row)
                stats[stat.item_id] = stat
            return stats
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Cannot read stats for {mode}: {exc}") from exc
        finally:
            conn.close()

    def save_stat(self, mode: str, stat: ItemStat) -> None:
        """Insert or replace the statistic for one item."""
        self._write(
            """INSERT OR REPLACE INTO item_stats
            (mode, item_id, trial_count, correct_count, automaticity,
             last_seen, ewma_ms, recent_times)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                mode,
                stat.item_id,
                stat.trial_count,
                stat.correct_count,
                stat.automaticity,
                stat.last_seen.isoformat() if stat.last_seen else None,
                stat.ewma_ms,
                json.dumps(stat.recent_times),
            ),
        )

    def clear_stats(self, mode: str) -> None:
        """Delete all item statistics for a mode."""
        self._write("DELETE FROM item_stats WHERE mode = ?", (mode,))

    def get_value(self, mode: str, key: str) -> Any | None:
        """Read a named value."""
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Cannot open {self.db_path}: {exc}") from exc
        try:
            row = conn.execute(
                "SELECT value FROM mode_values WHERE mode = ? AND key = ?",
                (mode, key),
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Cannot read {mode}/{key}: {exc}") from exc
        finally:
            conn.close()

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable value for {mode}/{key}")
            return None

    def set_value(self, mode: str, key: str, value: Any) -> None:
        """Write a JSON-serializable named value."""
        self._write(
            "INSERT OR REPLACE INTO mode_values (mode, key, value) VALUES (?, ?, ?)",
            (mode, key, json.dumps(value)),
        )

    def delete_value(self, mode: str, key: str) -> None:
        """Remove a named value if present."""
        self._write(
            "DELETE FROM mode_values WHERE mode = ? AND key = ?",
            (mode, key),
        )

    def _write(self, sql: str, params: tuple) -> None:
        """Execute a single statement and commit it."""
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Cannot open {self.db_path}: {exc}") from exc
        try:
            conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as exc:
            logger.warning(f"Storage write failed: {exc}")
            raise PersistenceUnavailableError(f"Storage write failed: {exc}") from exc
        finally:
            conn.close()

    def _row_to_stat(self, row) -> ItemStat:
        """Convert a database row to an ItemStat model."""
        return ItemStat(
            item_id=row["item_id"],
            trial_count=row["trial_count"],
            correct_count=row["correct_count"],
            automaticity=row["automaticity"],
            last_seen=datetime.fromisoformat(row["last_seen"])
            if row["last_seen"]
            else None,
            ewma_ms=row["ewma_ms"],
            recent_times=json.loads(row["recent_times"]),
        )
