"""
Expiration metadata store.

SQLite-backed table of ``(content key, expire_at)`` records, accessed through
a single long-lived aiosqlite connection owned by the store. Writes are
serialized with an asyncio lock; reads go straight through. The database runs
in WAL mode so other processes can read while this one writes.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from assetcache.exceptions import CacheNotInitializedError
from assetcache.logging import get_logger
from assetcache.types import CacheEntry

logger = get_logger(__name__)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as fixed-width ISO-8601 UTC.

    Always includes microseconds so that text order matches time order,
    which the expiration index relies on.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


class MetadataStore:
    """Persistent mapping from content key to expiration time."""

    def __init__(self, db_path: str | Path) -> None:
        """Initialize metadata store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None
        self._write_lock: asyncio.Lock | None = None

    async def init(self) -> None:
        """Open the connection and create the schema. Safe to call twice."""
        if self._db is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        self._write_lock = asyncio.Lock()

        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS cache_items (
                id TEXT PRIMARY KEY,
                expire_at TEXT NOT NULL
            )
        """)
        await self._db.execute(
            "CREATE INDEX IF NOT EXISTS idx_cache_items_expire_at ON cache_items(expire_at)"
        )
        await self._db.commit()
        logger.debug("Metadata store opened", db_path=str(self.db_path))

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            self._write_lock = None

    @property
    def is_open(self) -> bool:
        return self._db is not None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise CacheNotInitializedError(
                "MetadataStore not initialized. Call init() first.",
                {"db_path": str(self.db_path)},
            )
        return self._db

    def _lock(self) -> asyncio.Lock:
        self._conn()
        assert self._write_lock is not None
        return self._write_lock

    async def upsert(self, content_key: str, expire_at: datetime) -> None:
        """Insert or fully replace the record for a content key."""
        db = self._conn()
        async with self._lock():
            await db.execute(
                "INSERT OR REPLACE INTO cache_items (id, expire_at) VALUES (?, ?)",
                (content_key, format_timestamp(expire_at)),
            )
            await db.commit()

    async def get(self, content_key: str) -> CacheEntry | None:
        """Look up the record for a content key.

        Returns:
            CacheEntry or None if no record exists.
        """
        db = self._conn()
        async with db.execute(
            "SELECT id, expire_at FROM cache_items WHERE id = ?", (content_key,)
        ) as cursor:
            row = await cursor.fetchone()

        if not row:
            return None
        return self._row_to_entry(row)

    async def scan_expired(self, before: datetime) -> list[CacheEntry]:
        """List all records whose expiration is strictly before ``before``.

        The result is fully buffered, ordered oldest first.
        """
        db = self._conn()
        async with db.execute(
            """
            SELECT id, expire_at FROM cache_items
            WHERE expire_at < ?
            ORDER BY expire_at
            """,
            (format_timestamp(before),),
        ) as cursor:
            rows = await cursor.fetchall()

        return [self._row_to_entry(row) for row in rows]

    async def delete_if_expired(self, content_key: str, before: datetime) -> bool:
        """Remove a record only if it is still expired at ``before``.

        A record refreshed by a save since the scan is left in place.

        Returns:
            True if a record was removed.
        """
        db = self._conn()
        async with self._lock():
            async with db.execute(
                "DELETE FROM cache_items WHERE id = ? AND expire_at < ?",
                (content_key, format_timestamp(before)),
            ) as cursor:
                removed = cursor.rowcount
            await db.commit()
        return removed > 0

    async def clear(self) -> int:
        """Remove every record.

        Returns:
            Number of records removed.
        """
        db = self._conn()
        async with self._lock():
            async with db.execute("DELETE FROM cache_items") as cursor:
                removed = cursor.rowcount
            await db.commit()
        return max(removed, 0)

    async def count(self) -> int:
        """Get total count of records."""
        db = self._conn()
        async with db.execute("SELECT COUNT(*) FROM cache_items") as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def count_expired(self, before: datetime) -> int:
        """Get count of records expiring strictly before ``before``."""
        db = self._conn()
        async with db.execute(
            "SELECT COUNT(*) FROM cache_items WHERE expire_at < ?",
            (format_timestamp(before),),
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0

    def _row_to_entry(self, row: aiosqlite.Row) -> CacheEntry:
        return CacheEntry(id=row["id"], expire_at=parse_timestamp(row["expire_at"]))
