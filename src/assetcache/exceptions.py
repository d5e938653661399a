"""
Custom exception hierarchy for the asset cache.

All exceptions inherit from AssetCacheError, which provides optional context
for structured error handling and logging.

Cache lookups never raise these to callers of CacheEngine: lookup failures
are reported as CacheError values. The exceptions below cover programming
errors and the seams between the engine and its collaborators.
"""

from __future__ import annotations

from typing import Any


class AssetCacheError(Exception):
    """Base exception for all asset cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class CacheNotInitializedError(AssetCacheError):
    """Raised when a store is used before init() or after close()."""

    pass


class BlobNotFoundError(AssetCacheError):
    """Raised by the blob store when no file exists for a content key.

    Context should include:
        - content_key: The content key that was looked up
    """

    pass


class DecodeError(AssetCacheError):
    """Raised by an asset decoder when cached bytes cannot be decoded.

    Context should include:
        - path: The blob path handed to the decoder
        - content_type: The content-type hint
    """

    pass
