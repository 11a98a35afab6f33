"""
Progress persistence.

A store holds one JSON blob per key. Stores raise StorageError on failure;
``load_progress``/``save_progress`` turn those failures into an in-memory
default state or a False return so a flip is never interrupted.
"""

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import orjson
from pydantic import ValidationError

from coinflip_game.core.exceptions import StorageError
from coinflip_game.core.logger import get_logger
from coinflip_game.core.engine.progress import ProgressState

logger = get_logger("storage")


class ProgressStore:
    """Key/value store for serialized progress blobs."""

    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def set(self, key: str, value: bytes):
        raise NotImplementedError

    def delete(self, key: str):
        raise NotImplementedError


class MemoryProgressStore(ProgressStore):
    """Process-local store, used for tests and when no database is configured."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes):
        self._data[key] = bytes(value)

    def delete(self, key: str):
        self._data.pop(key, None)


class SqliteProgressStore(ProgressStore):
    """Thread-safe SQLite key/value table."""

    _local = threading.local()

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        connections = getattr(self._local, "connections", None)
        if connections is None:
            connections = self._local.connections = {}
        conn = connections.get(str(self.db_path))
        if conn is None:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            connections[str(self.db_path)] = conn
        return conn

    def _init_db(self):
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Initializing progress store at {self.db_path}")
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS progress (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT
                )
            """
            )
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not initialize progress store: {e}") from e

    def get(self, key: str) -> Optional[bytes]:
        try:
            row = self._get_connection().execute(
                "SELECT value FROM progress WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Could not read progress: {e}", key=key) from e
        return row[0].encode("utf-8") if row else None

    def set(self, key: str, value: bytes):
        try:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO progress (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
                (key, value.decode("utf-8"), datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Could not write progress: {e}", key=key) from e

    def delete(self, key: str):
        try:
            conn = self._get_connection()
            conn.execute("DELETE FROM progress WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Could not delete progress: {e}", key=key) from e


def create_store(backend: str, db_path: Path = None) -> ProgressStore:
    """Build the configured store, falling back to memory if SQLite is unavailable."""
    if backend == "memory" or db_path is None:
        return MemoryProgressStore()
    try:
        return SqliteProgressStore(db_path)
    except StorageError as e:
        logger.error(f"{e}; progress will only be kept in memory")
        return MemoryProgressStore()


def load_progress(store: Optional[ProgressStore], key: str) -> ProgressState:
    """Load the stored snapshot. A missing, unreadable or corrupt blob yields a fresh state."""
    if store is None:
        return ProgressState()
    try:
        blob = store.get(key)
    except StorageError as e:
        logger.error(f"Error loading progress: {e}")
        return ProgressState()

    if blob is None:
        logger.info(f"No saved progress under '{key}', starting fresh")
        return ProgressState()

    try:
        return ProgressState.from_json(blob)
    except (orjson.JSONDecodeError, ValidationError) as e:
        logger.error(f"Saved progress under '{key}' is corrupt, starting fresh: {e}")
        return ProgressState()


def save_progress(store: Optional[ProgressStore], key: str, progress: ProgressState) -> bool:
    """Persist the snapshot. Returns True if saved successfully."""
    if store is None:
        return False
    try:
        store.set(key, progress.to_json())
        return True
    except StorageError as e:
        logger.error(f"Error saving progress: {e}")
        return False
