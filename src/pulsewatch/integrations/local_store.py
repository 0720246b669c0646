"""SQLite-backed local key-value store.

Persists the client's local state (version marker, legacy pulse records)
as JSON values in a single table, using aiosqlite so every operation is
awaitable. WAL mode keeps reads cheap while the dashboard is writing.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional, Set

import aiosqlite
import structlog

from pulsewatch.core.config import ConfigManager
from pulsewatch.core.errors import LocalStoreError

log = structlog.get_logger()

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS local_storage (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteLocalStore:
    """Async key-value store on top of a single SQLite connection.

    A lock serializes access to the connection, which is the recommended
    approach for SQLite.

    Usage:
        store = SqliteLocalStore("./data/pulsewatch.db")
        await store.connect()
        await store.set("app-version", "2.0.0")
        version = await store.get("app-version")
        await store.close()
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        config: Optional[ConfigManager] = None,
    ):
        """Initialize the store.

        Args:
            db_path: Direct path to database file (takes precedence).
            config: Configuration manager for default settings.
        """
        if db_path:
            self._db_path = db_path
        elif config:
            self._db_path = config.get("store.path", "./data/pulsewatch.db")
        else:
            self._db_path = "./data/pulsewatch.db"

        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._log = log.bind(component="local_store")

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connection is not None

    async def connect(self) -> None:
        """Open the database and create the table if needed."""
        async with self._lock:
            if self._connection is not None:
                return

            try:
                if self._db_path != ":memory:":
                    Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = await aiosqlite.connect(self._db_path)
                self._connection.row_factory = aiosqlite.Row
                await self._connection.execute("PRAGMA journal_mode=WAL")
                await self._connection.execute("PRAGMA busy_timeout=5000")
                await self._connection.executescript(SCHEMA_SQL)
                await self._connection.commit()
            except (aiosqlite.Error, OSError) as e:
                self._connection = None
                raise LocalStoreError(f"Cannot open local store at {self._db_path}", e)

        self._log.info("local_store_connected", db_path=str(self._db_path))

    async def close(self) -> None:
        """Close the database connection."""
        async with self._lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
        self._log.info("local_store_closed")

    async def __aenter__(self) -> "SqliteLocalStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_connected(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise LocalStoreError("Local store not connected. Call connect() first.")
        return self._connection

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for a key, or None if absent."""
        conn = self._ensure_connected()
        try:
            async with self._lock:
                async with conn.execute(
                    "SELECT value FROM local_storage WHERE key = ?", (key,)
                ) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise LocalStoreError(f"Cannot read key {key!r}", e)

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise LocalStoreError(f"Stored value for {key!r} is not valid JSON", e)

    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under a key."""
        conn = self._ensure_connected()
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise LocalStoreError(f"Value for {key!r} is not JSON-serializable", e)

        try:
            async with self._lock:
                await conn.execute(
                    """
                    INSERT INTO local_storage (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, encoded),
                )
                await conn.commit()
        except aiosqlite.Error as e:
            raise LocalStoreError(f"Cannot write key {key!r}", e)

    async def list_keys(self) -> Set[str]:
        """Return every key currently stored."""
        conn = self._ensure_connected()
        keys: Set[str] = set()
        try:
            async with self._lock:
                async with conn.execute("SELECT key FROM local_storage") as cursor:
                    async for row in cursor:
                        keys.add(row["key"])
        except aiosqlite.Error as e:
            raise LocalStoreError("Cannot list keys", e)
        return keys

    async def delete(self, key: str) -> None:
        """Delete a key. Deleting an absent key is not an error."""
        conn = self._ensure_connected()
        try:
            async with self._lock:
                await conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
                await conn.commit()
        except aiosqlite.Error as e:
            raise LocalStoreError(f"Cannot delete key {key!r}", e)
