"""
Cache engine: the coordinated operations over metadata and blobs.

Layout under the cache root:

    <root>/CacheStore.db    expiration records (SQLite)
    <root>/Cache/<key>      one blob per content key

The engine owns both stores. Callers only ever pass logical keys (usually
source URLs); the content key is derived internally.

Save writes the blob before the record, so a crash in between leaves an
orphaned blob rather than a record pointing at nothing. Lookups report every
failure as a CacheError value instead of raising.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Callable

import aiosqlite

from assetcache.cache.base import AssetDecoder, FileAssetDecoder
from assetcache.cache.blobs import BlobStore
from assetcache.cache.keys import content_key
from assetcache.cache.metadata import MetadataStore
from assetcache.exceptions import (
    AssetCacheError,
    BlobNotFoundError,
    CacheNotInitializedError,
)
from assetcache.logging import get_logger, log_context
from assetcache.types import (
    TTL,
    AssetResult,
    CacheError,
    CacheStats,
    LoadResult,
    expire_after,
    to_timedelta,
    utc_now,
)

logger = get_logger(__name__)

DB_FILENAME = "CacheStore.db"
BLOBS_DIRNAME = "Cache"
DEFAULT_CONTENT_TYPE = "audio/mpeg"

Clock = Callable[[], datetime]


class CacheEngine:
    """Disk-backed key-value cache with absolute expiration.

    Usage:
        async with CacheEngine(root) as cache:
            await cache.save(url, payload, timedelta(hours=1))
            result = await cache.load(url)
            if result.error.status is CacheStatus.SUCCESS:
                ...
    """

    def __init__(
        self,
        root_dir: str | Path,
        *,
        decoder: AssetDecoder | None = None,
        default_content_type: str = DEFAULT_CONTENT_TYPE,
        clock: Clock = utc_now,
    ) -> None:
        """Create the cache directories and prepare the stores.

        Args:
            root_dir: Cache root. Created if missing.
            decoder: Collaborator used by download_asset. Defaults to
                FileAssetDecoder.
            default_content_type: Hint passed to the decoder when
                download_asset() is called without one.
            clock: Source of "now" for expiration, returning aware datetimes.

        Raises:
            OSError: If the directories cannot be created.
        """
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

        self.metadata = MetadataStore(self.root_dir / DB_FILENAME)
        self.blobs = BlobStore(self.root_dir / BLOBS_DIRNAME)
        self.blobs.ensure_dir()

        self.decoder = decoder or FileAssetDecoder()
        self.default_content_type = default_content_type
        self._clock = clock

    async def init(self) -> None:
        """Open the metadata store."""
        await self.metadata.init()
        logger.info("Cache engine initialized", cache_dir=str(self.root_dir))

    async def close(self) -> None:
        await self.metadata.close()

    async def __aenter__(self) -> CacheEngine:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _context(self, operation: str) -> AbstractContextManager[None]:
        return log_context(cache_root=str(self.root_dir), operation=operation)

    async def save(self, key: str, data: bytes, ttl: TTL) -> CacheError:
        """Store ``data`` under ``key`` until ``now + ttl``.

        Replaces any previous payload and expiration for the key.

        Args:
            key: Logical key, typically the source URL.
            data: Payload bytes.
            ttl: Time-to-live as a timedelta or seconds. Zero means the entry
                is already expired when read back.

        Returns:
            SUCCESS, or UNKNOWN if the blob or record could not be written.

        Raises:
            ValueError: If ``ttl`` is negative.
            CacheNotInitializedError: If init() has not been awaited.
        """
        expires_in = to_timedelta(ttl)
        if not self.metadata.is_open:
            raise CacheNotInitializedError(
                "CacheEngine not initialized. Call init() first.",
                {"cache_dir": str(self.root_dir)},
            )
        ck = content_key(key)

        with self._context("save"):
            expire_at = expire_after(self._clock(), expires_in)
            try:
                # The blob directory may have been removed since construction
                self.blobs.ensure_dir()
                await self.blobs.write(ck, data)
                await self.metadata.upsert(ck, expire_at)
            except (OSError, aiosqlite.Error) as e:
                logger.error("Save failed", content_key=ck, error=str(e))
                return CacheError.unknown(str(e))

            logger.debug(
                "Saved entry",
                content_key=ck,
                size=len(data),
                expire_at=expire_at.isoformat(),
            )
            return CacheError.success()

    async def _validate(self, ck: str, now: datetime) -> CacheError:
        """Run the record, expiration and blob checks in order."""
        entry = await self.metadata.get(ck)
        if entry is None:
            return CacheError.not_found()
        if entry.is_expired(now):
            return CacheError.expired()
        if not await self.blobs.exists(ck):
            logger.warning("Blob file missing for live entry", content_key=ck)
            return CacheError.file_missing()
        return CacheError.success()

    async def load(self, key: str) -> LoadResult:
        """Read the cached bytes for ``key``.

        Returns:
            LoadResult with the bytes and SUCCESS, or None and one of
            NOT_FOUND (no record, or record without file), EXPIRED, UNKNOWN.
        """
        ck = content_key(key)
        with self._context("load"):
            now = self._clock()
            try:
                status = await self._validate(ck, now)
                if not status.ok:
                    return LoadResult(None, status)
                data = await self.blobs.read(ck)
            except BlobNotFoundError:
                return LoadResult(None, CacheError.file_missing())
            except (OSError, aiosqlite.Error) as e:
                logger.error("Load failed", content_key=ck, error=str(e))
                return LoadResult(None, CacheError.unknown(str(e)))

            return LoadResult(data, CacheError.success())

    async def download_asset(
        self, key: str, content_type: str | None = None
    ) -> AssetResult:
        """Decode the cached file for ``key`` with the configured decoder.

        The same checks as load() run first. The decoder receives the blob
        path on disk rather than the bytes.

        Args:
            key: Logical key, typically the source URL.
            content_type: Hint for the decoder, e.g. "audio/mpeg". Defaults to
                the engine's default_content_type.

        Returns:
            AssetResult with the decoded asset and SUCCESS, or None and
            NOT_FOUND, EXPIRED, or UNKNOWN carrying the decoder's error text.
        """
        ck = content_key(key)
        content_type = content_type or self.default_content_type
        with self._context("download_asset"):
            now = self._clock()
            try:
                status = await self._validate(ck, now)
            except (OSError, aiosqlite.Error) as e:
                logger.error("Lookup failed", content_key=ck, error=str(e))
                return AssetResult(None, CacheError.unknown(str(e)))
            if not status.ok:
                return AssetResult(None, status)

            path = self.blobs.path(ck)
            logger.debug("Decoding cached asset", path=str(path), content_type=content_type)
            try:
                asset = await self.decoder.decode(path, content_type)
            except Exception as e:
                detail = e.message if isinstance(e, AssetCacheError) else str(e)
                logger.warning("Decode failed", content_key=ck, error=detail)
                return AssetResult(None, CacheError.unknown(detail))

            return AssetResult(asset, CacheError.success())

    async def contains(self, key: str) -> bool:
        """Check whether ``key`` would load successfully right now."""
        with self._context("contains"):
            status = await self._validate(content_key(key), self._clock())
            return status.ok

    async def delete_expired(self) -> int:
        """Remove every entry that expired before now, record and blob.

        Blob removal is best-effort per entry: a missing file or an OS error
        is logged and the sweep continues.

        Returns:
            Number of entries removed.

        Raises:
            aiosqlite.Error: If the metadata store cannot be scanned or
                updated. Entries swept before the failure stay removed.
        """
        with self._context("delete_expired"):
            now = self._clock()
            expired = await self.metadata.scan_expired(now)

            swept = 0
            for entry in expired:
                # Skip entries re-saved since the scan
                if not await self.metadata.delete_if_expired(entry.id, now):
                    continue
                swept += 1
                try:
                    await self.blobs.delete(entry.id)
                except OSError as e:
                    logger.warning(
                        "Could not delete expired blob",
                        content_key=entry.id,
                        error=str(e),
                    )

            if swept:
                logger.info("Swept expired entries", count=swept)
            return swept

    async def delete_all(self) -> None:
        """Remove every record and every blob file.

        Raises:
            aiosqlite.Error: If the metadata store cannot be cleared; blob
                files are left untouched in that case.
            OSError: If the blob directory cannot be listed.
        """
        with self._context("delete_all"):
            records = await self.metadata.clear()
            files = await self.blobs.clear()
            logger.info("Cleared cache", records=records, files=files)

    async def stats(self) -> CacheStats:
        """Summarize both stores."""
        now = self._clock()
        files, total_bytes = await self.blobs.usage()
        return CacheStats(
            entries=await self.metadata.count(),
            expired_entries=await self.metadata.count_expired(now),
            blob_files=files,
            blob_bytes=total_bytes,
        )
