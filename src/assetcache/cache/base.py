"""
Base classes for asset decoding.

The cache hands a local blob path plus a content-type hint to an
AssetDecoder, which turns the bytes into whatever the host application plays
or renders. Media pipelines implement this interface outside the package;
FileAssetDecoder is the built-in fallback that only reads the bytes back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import aiofiles

from assetcache.exceptions import DecodeError
from assetcache.types import DecodedAsset


class AssetDecoder(ABC):
    """Abstract interface for turning a cached file into an asset."""

    @abstractmethod
    async def decode(self, path: Path, content_type: str) -> Any:
        """Decode the file at ``path``.

        Raises:
            Exception: Any failure. The engine reports it as an UNKNOWN
                result carrying the exception text.
        """
        ...


class FileAssetDecoder(AssetDecoder):
    """Reads the file and wraps it with its content type."""

    async def decode(self, path: Path, content_type: str) -> DecodedAsset:
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            raise DecodeError(
                f"cannot read {path.name}: {e.strerror or e}",
                {"path": str(path), "content_type": content_type},
            ) from e
        return DecodedAsset(path=path, content_type=content_type, data=data)
