"""
Core types for the asset cache.

This module defines the data structures shared by the cache engine and its
stores:
- CacheStatus enum and the CacheError result value
- Frozen dataclasses for metadata records and operation results
- Helper functions for IDs, timestamps and TTL normalization
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Union

from uuid6 import uuid7

TTL = Union[timedelta, int, float]


def generate_id(prefix: str = "") -> str:
    """Generate a time-ordered unique ID using UUID7.

    Args:
        prefix: Optional prefix for the ID.

    Returns:
        A unique ID string, optionally prefixed.
    """
    uid = str(uuid7())
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


MAX_EXPIRE_AT = datetime.max.replace(tzinfo=timezone.utc)


def expire_after(now: datetime, ttl: timedelta) -> datetime:
    """Add a TTL to ``now``, clamping past the calendar end to MAX_EXPIRE_AT."""
    try:
        return now + ttl
    except OverflowError:
        return MAX_EXPIRE_AT


def to_timedelta(ttl: TTL) -> timedelta:
    """Normalize a TTL given as a timedelta or a number of seconds.

    Values too large for a timedelta (including infinity) become
    ``timedelta.max``.

    Raises:
        ValueError: If the TTL is negative.
    """
    if isinstance(ttl, timedelta):
        delta = ttl
    else:
        try:
            delta = timedelta(seconds=ttl)
        except OverflowError:
            delta = timedelta.max if ttl > 0 else timedelta.min
    if delta < timedelta(0):
        raise ValueError(f"ttl must not be negative, got {delta}")
    return delta


class CacheStatus(str, Enum):
    """Outcome of a cache operation."""

    SUCCESS = "success"
    UNKNOWN = "unknown"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CacheError:
    """Status plus human-readable message returned by every cache lookup.

    Despite the name this also carries the success outcome. Compare
    ``status`` (or use ``ok``) instead of relying on truthiness.
    """

    status: CacheStatus
    message: str

    @property
    def ok(self) -> bool:
        return self.status is CacheStatus.SUCCESS

    @classmethod
    def success(cls) -> CacheError:
        return cls(CacheStatus.SUCCESS, "success")

    @classmethod
    def expired(cls) -> CacheError:
        return cls(CacheStatus.EXPIRED, "cache is expired")

    @classmethod
    def not_found(cls) -> CacheError:
        return cls(CacheStatus.NOT_FOUND, "matching cache is not found")

    @classmethod
    def file_missing(cls) -> CacheError:
        """NotFound for a metadata record whose blob file is gone."""
        return cls(CacheStatus.NOT_FOUND, "cache file is missing")

    @classmethod
    def unknown(cls, detail: str) -> CacheError:
        return cls(CacheStatus.UNKNOWN, f"unknown error occured: {detail}")


@dataclass(frozen=True)
class CacheEntry:
    """Metadata record: one per content key."""

    id: str
    expire_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Strictly-before comparison, so a zero TTL is expired immediately."""
        return self.expire_at < now


@dataclass(frozen=True)
class LoadResult:
    """Bytes loaded from the cache, or None with the failure status."""

    data: bytes | None
    error: CacheError

    @property
    def ok(self) -> bool:
        return self.error.ok


@dataclass(frozen=True)
class AssetResult:
    """Decoded asset from the cache, or None with the failure status."""

    asset: Any | None
    error: CacheError

    @property
    def ok(self) -> bool:
        return self.error.ok


@dataclass(frozen=True)
class DecodedAsset:
    """Asset produced by the default file decoder."""

    path: Path
    content_type: str
    data: bytes


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time summary of both stores."""

    entries: int
    expired_entries: int
    blob_files: int
    blob_bytes: int

    def to_dict(self) -> dict[str, int]:
        return {
            "entries": self.entries,
            "expired_entries": self.expired_entries,
            "blob_files": self.blob_files,
            "blob_bytes": self.blob_bytes,
        }
