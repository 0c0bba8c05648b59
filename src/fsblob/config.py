"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
The storage engine itself is configured through its constructor; these
settings only feed DiskCache.from_settings() and setup_logging().
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fsblob.logging import setup_logging
from fsblob.types import CacheLimits, TimestampPolicy


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Optional:
        FSBLOB_CACHE_DIR: Root directory of the cache
        FSBLOB_MAX_SIZE_BYTES: Total size bound enforced by compaction
        FSBLOB_MAX_ENTRIES: Entry count bound enforced by compaction
        FSBLOB_TIMESTAMP_POLICY: on_write_only (FIFO), on_read or on_read_deferred (LRU)
        FSBLOB_LOG_LEVEL: Logging level
        FSBLOB_LOG_FILE: JSON-lines log file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    FSBLOB_CACHE_DIR: Path = Field(
        default=Path(".cache/fsblob"), description="Cache root directory"
    )

    FSBLOB_MAX_SIZE_BYTES: int | None = Field(
        default=None, ge=0, description="Maximum total size of entries in bytes"
    )
    FSBLOB_MAX_ENTRIES: int | None = Field(
        default=None, ge=0, description="Maximum number of entries"
    )

    FSBLOB_TIMESTAMP_POLICY: TimestampPolicy = Field(
        default=TimestampPolicy.ON_WRITE_ONLY,
        description="When entry timestamps are refreshed (FIFO vs LRU eviction)",
    )

    FSBLOB_LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    FSBLOB_LOG_FILE: Path | None = Field(default=None, description="JSON log file")

    @property
    def cache_dir(self) -> Path:
        """Get cache directory (lowercase alias)."""
        return self.FSBLOB_CACHE_DIR

    @property
    def timestamp_policy(self) -> TimestampPolicy:
        """Get timestamp policy (lowercase alias)."""
        return self.FSBLOB_TIMESTAMP_POLICY

    @property
    def limits(self) -> CacheLimits:
        """Compaction bounds built from the size and count settings."""
        return CacheLimits(
            max_size_bytes=self.FSBLOB_MAX_SIZE_BYTES,
            max_entries=self.FSBLOB_MAX_ENTRIES,
        )

    def configure_logging(self, console_output: bool = True) -> None:
        """Apply the log level and log file settings."""
        setup_logging(
            log_level=self.FSBLOB_LOG_LEVEL,
            log_file=self.FSBLOB_LOG_FILE,
            console_output=console_output,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
