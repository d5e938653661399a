"""
Pytest configuration and fixtures for asset cache tests.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator, Generator
from unittest.mock import patch

import pytest

from assetcache.cache.engine import CacheEngine
from assetcache.config import Settings, clear_settings_cache


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs: float) -> None:
        self.now += timedelta(seconds=seconds, **kwargs)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def engine(
    temp_dir: Path, clock: FakeClock
) -> AsyncGenerator[CacheEngine, None]:
    """Create an initialized cache engine driven by the fake clock."""
    cache = CacheEngine(temp_dir / "cache", clock=clock)
    await cache.init()
    yield cache
    await cache.close()


@pytest.fixture
async def realtime_engine(temp_dir: Path) -> AsyncGenerator[CacheEngine, None]:
    """Create an initialized cache engine on the wall clock."""
    cache = CacheEngine(temp_dir / "realtime")
    await cache.init()
    yield cache
    await cache.close()


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide environment variables pointing the settings at temp_dir."""
    env_vars = {
        "CACHE_DIR": str(temp_dir / "env_cache"),
        "DEFAULT_TTL_SECONDS": "600",
        "DEFAULT_CONTENT_TYPE": "audio/ogg",
        "LOG_LEVEL": "WARNING",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance with mock configuration."""
    from assetcache.config import get_settings

    settings = get_settings()
    settings.ensure_directories()
    yield settings
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
