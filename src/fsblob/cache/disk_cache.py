"""
Filesystem-backed key/value cache for binary blobs.

There is no central index. Each entry is an independent file at
``<directory>/v1/<hash(key)>/<n>.dat`` that embeds its own key, so losing
some files (a cleaned temp directory, a crash mid-write) only loses those
entries.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from fsblob.cache import eviction
from fsblob.cache.base import CacheProtocol
from fsblob.cache.buckets import DATA_SUFFIX, BucketResolver, KeyToHash, md5_hex
from fsblob.cache.fs import ensure_dir, touch, walk_files
from fsblob.cache.writer import AtomicWriter
from fsblob.config import Settings, get_settings
from fsblob.logging import get_logger, log_context
from fsblob.types import CacheLimits, CacheState, CompactionReport, TimestampPolicy

logger = get_logger(__name__)

LAYOUT_VERSION = "v1"


class DiskCache(CacheProtocol):
    """A cache mapping string keys to binary values stored on disk.

    The first operation creates the directory and sweeps stray temp files
    from earlier crashes; every public coroutine waits for that to finish.
    All other filesystem work happens synchronously inside each call.

    Args:
        directory: Cache root. Created on first use.
        key_to_hash: Maps a key to its bucket directory name. Tests inject
            a degenerate hash to force collisions.
        timestamp_policy: ON_WRITE_ONLY gives FIFO eviction and spares the
            disk a write per read. The ON_READ variants give LRU.
        limits: Default bounds for compact() when none are passed.
    """

    def __init__(
        self,
        directory: str | Path,
        key_to_hash: KeyToHash = md5_hex,
        timestamp_policy: TimestampPolicy | str = TimestampPolicy.ON_WRITE_ONLY,
        limits: CacheLimits | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.data_dir = self.directory / LAYOUT_VERSION
        self.timestamp_policy = TimestampPolicy(timestamp_policy)
        self.limits = limits or CacheLimits()

        self.resolver = BucketResolver(self.data_dir, key_to_hash)
        self.writer = AtomicWriter(self.directory, self.resolver)

        self._state = CacheState.UNINITIALIZED
        self._init_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DiskCache:
        """Build a cache from environment settings."""
        settings = settings or get_settings()
        return cls(
            settings.cache_dir,
            timestamp_policy=settings.timestamp_policy,
            limits=settings.limits,
        )

    @property
    def state(self) -> CacheState:
        return self._state

    # ------------------------------------------------------------------
    # Lifecycle

    def _initialize(self) -> None:
        with log_context(cache_dir=str(self.directory), operation="init"):
            ensure_dir(self.directory)
            report = eviction.compact(self.directory)
            logger.info(
                "Disk cache initialized",
                entries=report.remaining_entries,
                temp_files_removed=report.temp_files_removed,
            )

    async def _run_initialization(self) -> None:
        try:
            await asyncio.to_thread(self._initialize)
        except BaseException:
            self._state = CacheState.UNINITIALIZED
            self._init_task = None
            raise
        self._state = CacheState.READY

    async def initialized(self) -> DiskCache:
        """Wait until the cache directory exists and the startup sweep is done.

        Starts initialization on the first call. If it fails, every waiter
        sees the error and the next call starts over.
        """
        if self._state is CacheState.READY:
            return self
        if self._init_task is None:
            self._state = CacheState.INITIALIZING
            self._init_task = asyncio.get_running_loop().create_task(
                self._run_initialization()
            )
        # A cancelled caller must not cancel initialization for the others
        await asyncio.shield(self._init_task)
        return self

    # ------------------------------------------------------------------
    # Operations

    async def read(self, key: str) -> bytes | None:
        """Return the value stored for key, or None if absent."""
        await self.initialized()
        with log_context(cache_dir=str(self.directory), operation="read"):
            found = self.resolver.read(key)
            if found is None:
                return None
            path, value = found
            self._refresh_timestamp(path)
            return value

    def _refresh_timestamp(self, path: Path) -> None:
        if self.timestamp_policy is TimestampPolicy.ON_READ:
            touch(path)
        elif self.timestamp_policy is TimestampPolicy.ON_READ_DEFERRED:
            asyncio.get_running_loop().call_soon(touch, path)

    async def write(self, key: str, value: bytes | None) -> Path | None:
        """Store value under key, replacing any previous value.

        Writing None deletes the key.

        Returns:
            The committed entry file, or None when value was None.
        """
        if value is None:
            await self.delete(key)
            return None
        await self.initialized()
        with log_context(cache_dir=str(self.directory), operation="write"):
            return self.writer.write(key, value)

    async def delete(self, key: str) -> bool:
        """Remove key. Returns False if it was not present."""
        await self.initialized()
        with log_context(cache_dir=str(self.directory), operation="delete"):
            return self.writer.delete(key)

    async def contains(self, key: str) -> bool:
        """Check for key without reading its value or touching its timestamp."""
        await self.initialized()
        return self.resolver.find(key) is not None

    async def keys(self) -> list[str]:
        """Return the keys of all readable entries, in no particular order."""
        await self.initialized()
        keys: list[str] = []
        for path in walk_files(self.data_dir):
            if not path.name.endswith(DATA_SUFFIX):
                continue
            key = self.resolver.read_key(path)
            if key is not None:
                keys.append(key)
        return keys

    async def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        report = await self.compact(CacheLimits(max_entries=0))
        return report.removed_count

    async def compact(self, limits: CacheLimits | None = None) -> CompactionReport:
        """Evict the oldest entries until limits hold.

        Args:
            limits: Bounds to enforce; defaults to the limits given at
                construction.
        """
        await self.initialized()
        return self.compact_sync(limits)

    def compact_sync(self, limits: CacheLimits | None = None) -> CompactionReport:
        """Synchronous compact() for callers without an event loop."""
        with log_context(cache_dir=str(self.directory), operation="compact"):
            return eviction.compact(self.directory, limits or self.limits)
