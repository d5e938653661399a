"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        CACHE_DIR: Root directory holding the metadata DB and blob directory
        DEFAULT_TTL_SECONDS: TTL used by the CLI when --ttl is not given
        DEFAULT_CONTENT_TYPE: Content-type hint handed to the asset decoder
        LOG_LEVEL: Logging level
        LOG_FILE: JSON Lines log file (console only when unset)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CACHE_DIR: Path = Field(default=Path(".cache/assets"), description="Cache root directory")

    DEFAULT_TTL_SECONDS: int = Field(
        default=86400, ge=0, description="Default time-to-live for saved entries"
    )
    DEFAULT_CONTENT_TYPE: str = Field(
        default="audio/mpeg", description="Content-type hint for decoding cached assets"
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON Lines log file")

    @field_validator("DEFAULT_CONTENT_TYPE")
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        """Require a type/subtype shaped value."""
        v = v.strip().lower()
        if "/" not in v:
            raise ValueError("DEFAULT_CONTENT_TYPE must look like 'type/subtype'")
        return v

    @property
    def default_ttl(self) -> timedelta:
        return timedelta(seconds=self.DEFAULT_TTL_SECONDS)

    def ensure_directories(self) -> None:
        """Create the cache root if it doesn't exist."""
        self.CACHE_DIR.mkdir(parents=True, exist_ok=True)

    def display(self) -> dict[str, str | int | None]:
        """Return settings as display-friendly values."""
        return {
            "CACHE_DIR": str(self.CACHE_DIR),
            "DEFAULT_TTL_SECONDS": self.DEFAULT_TTL_SECONDS,
            "DEFAULT_CONTENT_TYPE": self.DEFAULT_CONTENT_TYPE,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": str(self.LOG_FILE) if self.LOG_FILE else None,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
