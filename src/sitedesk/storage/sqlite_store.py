"""SQLite key/value storage backend."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from sitedesk.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteStore(StorageBackend):
    """SQLite-backed key/value store in WAL mode."""

    def __init__(self, db_path: Path, *, wal_mode: bool = True) -> None:
        self.db_path = db_path
        self.wal_mode = wal_mode
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Create database and apply schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self.db_path))
        self._db.row_factory = aiosqlite.Row

        if self.wal_mode:
            await self._db.execute("PRAGMA journal_mode=WAL")

        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.info("Initialized SQLite store at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Store not initialized. Call initialize() first.")
        return self._db

    async def get_raw(self, key: str) -> str | None:
        cursor = await self.db.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return row["value"] if row else None

    async def set_raw(self, key: str, value: str) -> None:
        await self.db.execute(
            """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value,
               updated_at = excluded.updated_at""",
            (key, value, datetime.now(UTC).isoformat()),
        )
        await self.db.commit()

    async def clear(self) -> int:
        cursor = await self.db.execute("DELETE FROM kv")
        await self.db.commit()
        return cursor.rowcount

    # --- Stats ---

    async def get_stats(self) -> dict[str, Any]:
        cursor = await self.db.execute("SELECT key, LENGTH(value) AS size, updated_at FROM kv")
        rows = await cursor.fetchall()
        return {
            "keys": {
                row["key"]: {"bytes": row["size"], "updated_at": row["updated_at"]}
                for row in rows
            },
            "db_path": str(self.db_path),
        }
