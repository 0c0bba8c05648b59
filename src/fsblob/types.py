"""
Core types for the fsblob storage engine.

This module defines the small data structures shared by the cache layers:
- Enums for the timestamp policy and the cache lifecycle
- Frozen dataclasses for limits and compaction results
- FileAndStat, the transient file + metadata pairing used by eviction scans
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from fsblob.exceptions import ConfigurationError


class TimestampPolicy(str, Enum):
    """When an entry's modified time is refreshed.

    The eviction scan always removes the oldest mtimes first, so this
    policy decides whether eviction behaves as FIFO or LRU.
    """

    ON_WRITE_ONLY = "on_write_only"  # FIFO, no disk writes on read
    ON_READ = "on_read"  # LRU, refreshed before read() returns
    ON_READ_DEFERRED = "on_read_deferred"  # LRU, refresh scheduled on the loop


class CacheState(str, Enum):
    """Lifecycle of a DiskCache instance."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass(frozen=True)
class CacheLimits:
    """Bounds enforced by compaction. None means unbounded."""

    max_size_bytes: int | None = None
    max_entries: int | None = None

    def __post_init__(self) -> None:
        for name in ("max_size_bytes", "max_entries"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigurationError(
                    f"{name} must be non-negative",
                    context={name: value},
                )

    @property
    def unbounded(self) -> bool:
        return self.max_size_bytes is None and self.max_entries is None

    def exceeded(self, total_size: int, count: int) -> bool:
        """Return True while either bound is still violated."""
        if self.max_size_bytes is not None and total_size > self.max_size_bytes:
            return True
        if self.max_entries is not None and count > self.max_entries:
            return True
        return False


@dataclass
class FileAndStat:
    """A file path paired with its lazily fetched, cached stat result."""

    path: Path
    _stat: os.stat_result | None = field(default=None, repr=False)

    @property
    def stat(self) -> os.stat_result:
        if self._stat is None:
            self._stat = self.path.stat()
        return self._stat

    @property
    def size(self) -> int:
        return self.stat.st_size

    @property
    def mtime_ns(self) -> int:
        return self.stat.st_mtime_ns


@dataclass(frozen=True)
class CompactionReport:
    """Outcome of a compaction pass."""

    scanned: int
    removed: list[Path] = field(default_factory=list)
    bytes_freed: int = 0
    temp_files_removed: int = 0
    remaining_entries: int = 0
    remaining_bytes: int = 0

    @property
    def removed_count(self) -> int:
        return len(self.removed)
