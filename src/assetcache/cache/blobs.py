"""
File-based blob store.

One file per content key, named by the key itself, in a single flat
directory. Writes go to a temp file in the same directory which is flushed,
fsynced and then renamed over the target, so readers only ever see a
complete old file or a complete new one.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import aiofiles
import aiofiles.os

from assetcache.cache.keys import is_content_key
from assetcache.exceptions import BlobNotFoundError
from assetcache.logging import get_logger
from assetcache.types import generate_id

logger = get_logger(__name__)

TEMP_SUFFIX = ".tmp"


class BlobStore:
    """Stores raw payloads under their content key."""

    def __init__(self, blobs_dir: str | Path) -> None:
        """Initialize blob store.

        Args:
            blobs_dir: Directory holding one file per content key.
        """
        self.blobs_dir = Path(blobs_dir)

    def ensure_dir(self) -> None:
        """Create the blob directory if it is missing."""
        self.blobs_dir.mkdir(parents=True, exist_ok=True)

    def path(self, content_key: str) -> Path:
        return self.blobs_dir / content_key

    async def exists(self, content_key: str) -> bool:
        return await aiofiles.os.path.isfile(self.path(content_key))

    async def write(self, content_key: str, data: bytes) -> Path:
        """Create or replace the blob for a content key.

        Returns once the bytes are on disk and the file is in place.
        """
        target = self.path(content_key)
        tmp_path = self.blobs_dir / f".{content_key}.{generate_id()}{TEMP_SUFFIX}"

        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(data)
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await aiofiles.os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("Stored blob", content_key=content_key, size=len(data))
        return target

    async def read(self, content_key: str) -> bytes:
        """Read the full blob for a content key.

        Raises:
            BlobNotFoundError: If no file exists for the key.
        """
        try:
            async with aiofiles.open(self.path(content_key), "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise BlobNotFoundError(
                "Blob file missing", {"content_key": content_key}
            ) from e

    async def delete(self, content_key: str) -> bool:
        """Remove the blob for a content key.

        Returns:
            True if a file was removed, False if there was none.
        """
        try:
            await aiofiles.os.remove(self.path(content_key))
        except FileNotFoundError:
            return False
        return True

    async def clear(self) -> int:
        """Remove every file in the blob directory, temp files included.

        Returns:
            Number of files removed.
        """
        return await asyncio.to_thread(self._clear_sync)

    async def usage(self) -> tuple[int, int]:
        """Count blob files and their total size in bytes."""
        return await asyncio.to_thread(self._usage_sync)

    def _clear_sync(self) -> int:
        if not self.blobs_dir.is_dir():
            return 0
        removed = 0
        for entry in self.blobs_dir.iterdir():
            if not entry.is_file():
                continue
            try:
                entry.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        return removed

    def _usage_sync(self) -> tuple[int, int]:
        if not self.blobs_dir.is_dir():
            return 0, 0
        files = 0
        total = 0
        for entry in self.blobs_dir.iterdir():
            if not is_content_key(entry.name):
                continue
            try:
                total += entry.stat().st_size
            except FileNotFoundError:
                continue
            files += 1
        return files, total
