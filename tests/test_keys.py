"""
Tests for content key derivation.
"""

from __future__ import annotations

from assetcache.cache.keys import content_key, is_content_key


class TestContentKey:
    """The content key is the on-disk name, so its format is pinned."""

    def test_known_digests(self) -> None:
        """Test MD5 rendering as uppercase hyphen-delimited pairs."""
        assert content_key("") == "D4-1D-8C-D9-8F-00-B2-04-E9-80-09-98-EC-F8-42-7E"
        assert content_key("abc") == "90-01-50-98-3C-D2-4F-B0-D6-96-3F-7D-28-E1-7F-72"

    def test_deterministic(self) -> None:
        url = "https://example.com/voice/0001.mp3?lang=ja"
        assert content_key(url) == content_key(url)

    def test_distinct_keys_distinct_content_keys(self) -> None:
        assert content_key("hoge") != content_key("huga")

    def test_non_ascii_keys_hash_utf8(self) -> None:
        """Test that non-ASCII keys produce a well-formed key."""
        key = content_key("https://example.com/音声/こんにちは.mp3")
        assert is_content_key(key)
        assert len(key) == 47

    def test_lone_surrogate_is_hashed(self) -> None:
        """Test that keys which are not valid UTF-8 still get a content key."""
        key = content_key("https://example.com/\ud800.mp3")
        assert is_content_key(key)
        assert key != content_key("https://example.com/\ufffd.mp3")
        assert key != content_key("https://example.com/.mp3")


class TestIsContentKey:
    """Test content key shape detection."""

    def test_accepts_generated_keys(self) -> None:
        assert is_content_key(content_key("anything"))

    def test_rejects_other_names(self) -> None:
        assert not is_content_key("d41d8cd98f00b204e9800998ecf8427e")
        assert not is_content_key(".D4-1D-8C-D9-8F-00-B2-04-E9-80-09-98-EC-F8-42-7E.tmp")
        assert not is_content_key("")
