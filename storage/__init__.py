"""Storage layer for the fluency trainer.

Provides the ModeStore interface plus SQLite and in-memory implementations
for persisting per-mode item statistics, motor baselines and scope.
"""

from pathlib import Path

from .base import ModeStore
from .sqlite import SQLiteModeStore
from .memory import MemoryModeStore
from .connection import get_connection, init_schema, DEFAULT_DB_PATH

__all__ = [
    # Abstract interface
    "ModeStore",
    # Implementations
    "SQLiteModeStore",
    "MemoryModeStore",
    # Connection utilities
    "get_connection",
    "init_schema",
    "DEFAULT_DB_PATH",
    # Factory
    "get_mode_store",
]


def get_mode_store(db_path: Path = DEFAULT_DB_PATH) -> ModeStore:
    """Get a SQLite-backed ModeStore, creating the schema if needed."""
    init_schema(db_path)
    return SQLiteModeStore(db_path)
