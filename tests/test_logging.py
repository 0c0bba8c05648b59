"""
Tests for structured logging.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Generator

import pytest

from fsblob.cache import DiskCache
from fsblob.config import Settings
from fsblob.logging import get_logger, get_operation, log_context, setup_logging


@pytest.fixture
def log_file(temp_dir: Path) -> Generator[Path, None, None]:
    path = temp_dir / "logs" / "fsblob.jsonl"
    setup_logging(log_level="DEBUG", log_file=path, console_output=False)
    yield path
    setup_logging()


def read_records(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestLogContext:
    """Tests for scoped context variables."""

    def test_context_is_restored(self) -> None:
        """Test that log_context resets the previous value on exit."""
        assert get_operation() is None
        with log_context(operation="outer"):
            with log_context(operation="inner"):
                assert get_operation() == "inner"
            assert get_operation() == "outer"
        assert get_operation() is None


class TestJSONLogging:
    """Tests for the JSON-lines file handler."""

    def test_records_carry_context_and_extra(self, log_file: Path) -> None:
        """Test that context and keyword extras reach the file."""
        logger = get_logger("tests")
        with log_context(cache_dir="/tmp/c", operation="write"):
            logger.info("Wrote entry", size=3)

        record = read_records(log_file)[-1]
        assert record["logger"] == "fsblob.tests"
        assert record["message"] == "Wrote entry"
        assert record["operation"] == "write"
        assert record["extra"]["size"] == 3
        assert record["extra"]["cache_dir"] == "/tmp/c"

    @pytest.mark.asyncio
    async def test_corrupt_record_is_logged(self, log_file: Path, temp_dir: Path) -> None:
        """Test that skipping a corrupt entry emits a warning."""
        disk_cache = DiskCache(temp_dir / "cache")
        path = await disk_cache.write("A", b"1")
        path.write_bytes(b"\x05broken")

        assert await disk_cache.read("A") is None

        warnings = [r for r in read_records(log_file) if r["level"] == "WARNING"]
        assert warnings[-1]["message"] == "Skipping corrupt record"
        assert warnings[-1]["extra"]["reason"] == "unsupported_version"
        assert warnings[-1]["operation"] == "read"
        assert warnings[-1]["extra"]["path"] == str(path)


class TestConfigureLogging:
    """Tests for applying logging settings."""

    def test_settings_configure_file_logging(self, temp_dir: Path) -> None:
        """Test that FSBLOB_LOG_FILE receives JSON records."""
        path = temp_dir / "configured.jsonl"
        settings = Settings(_env_file=None, FSBLOB_LOG_LEVEL="WARNING", FSBLOB_LOG_FILE=path)

        settings.configure_logging(console_output=False)
        try:
            get_logger("tests").warning("Disk nearly full", free_bytes=10)
        finally:
            setup_logging()

        record = read_records(path)[-1]
        assert record["level"] == "WARNING"
        assert record["extra"]["free_bytes"] == 10
