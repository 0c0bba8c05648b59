"""
Pytest configuration and fixtures for fsblob tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncGenerator, Generator
from unittest.mock import patch

import pytest

from fsblob.cache import DiskCache
from fsblob.config import clear_settings_cache
from helpers import collide


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def mock_env_vars() -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "FSBLOB_CACHE_DIR": ".test_cache",
        "FSBLOB_MAX_SIZE_BYTES": "1024",
        "FSBLOB_MAX_ENTRIES": "3",
        "FSBLOB_TIMESTAMP_POLICY": "on_read",
        "FSBLOB_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars
    clear_settings_cache()


@pytest.fixture
async def cache(temp_dir: Path) -> AsyncGenerator[DiskCache, None]:
    """Create an initialized cache in a fresh directory."""
    disk_cache = DiskCache(temp_dir / "cache")
    await disk_cache.initialized()
    yield disk_cache


@pytest.fixture
async def colliding_cache(temp_dir: Path) -> AsyncGenerator[DiskCache, None]:
    """Create a cache whose keys all hash to one bucket."""
    disk_cache = DiskCache(temp_dir / "cache", key_to_hash=collide)
    await disk_cache.initialized()
    yield disk_cache
