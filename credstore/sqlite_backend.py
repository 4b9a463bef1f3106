"""SQLite-backed key-value storage backend."""

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List, Optional, Union

from credstore.backend import StorageBackend

logger = logging.getLogger(__name__)


class SqliteStorage(StorageBackend):
    """
    Persistent backend keeping every entry in a single `kv` table.

    A connection is opened per operation; blocking calls run in a worker
    thread so the event loop keeps serving the link.
    """

    def __init__(self, db_path: Union[str, Path], max_value_size: Optional[int] = None):
        """
        Initialize backend and create the schema if needed.

        Args:
            db_path: Path to SQLite database file
            max_value_size: Per-value size cap in characters
        """
        self.db_path = Path(db_path)
        self.max_value_size = max_value_size
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()

        logger.debug(f"Initialized key-value store at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        try:
            yield conn
        finally:
            conn.close()

    def _get_sync(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def _set_sync(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()

    def _remove_sync(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()

    def _keys_sync(self) -> List[str]:
        with self._get_connection() as conn:
            return [row[0] for row in conn.execute("SELECT key FROM kv ORDER BY key")]

    def _clear_sync(self) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv")
            conn.commit()

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: str) -> None:
        self.check_value_size(key, value)
        await asyncio.to_thread(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove_sync, key)

    async def keys(self) -> List[str]:
        return await asyncio.to_thread(self._keys_sync)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)
