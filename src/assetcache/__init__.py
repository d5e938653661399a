"""
Disk-backed asset cache with time-based expiration.

Stores downloaded binary assets (audio payloads, images, etc.) on disk under
a content key derived from the logical key, with expiration metadata kept in
SQLite.
"""

from __future__ import annotations

__version__ = "0.1.0"

from assetcache.cache.engine import CacheEngine
from assetcache.types import AssetResult, CacheError, CacheStatus, LoadResult

__all__ = [
    "AssetResult",
    "CacheEngine",
    "CacheError",
    "CacheStatus",
    "LoadResult",
    "__version__",
]
