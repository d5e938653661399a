"""
Content key derivation.

The content key is both the metadata primary key and the blob filename, so
its format is part of the on-disk layout: changing it orphans every entry
written by an earlier version.
"""

from __future__ import annotations

import hashlib
import re

CONTENT_KEY_PATTERN = re.compile(r"^[0-9A-F]{2}(?:-[0-9A-F]{2}){15}$")


def content_key(key: str) -> str:
    """Hash a logical key into its content key.

    MD5 over the UTF-8 bytes, rendered as uppercase hex pairs joined by
    hyphens, e.g. ``"8B-1A-99-53-C4-61-12-96-A8-27-AB-F8-C4-78-04-D7"``.
    Lone surrogates are encoded as-is rather than rejected. Collisions are
    not guarded against.
    """
    digest = hashlib.md5(
        key.encode("utf-8", "surrogatepass"), usedforsecurity=False
    ).digest()
    return "-".join(f"{b:02X}" for b in digest)


def is_content_key(name: str) -> bool:
    """Check whether a filename has the content key shape."""
    return CONTENT_KEY_PATTERN.match(name) is not None
