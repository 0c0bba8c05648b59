"""
Compaction: sweep stray temp files and evict the oldest entries.

Entries are ranked by modified time. Whether that ranking means FIFO or
LRU depends only on the cache's timestamp policy: if reads refresh
mtimes, the oldest mtime is the least recently used entry.
"""

from __future__ import annotations

import os
from pathlib import Path

from fsblob.cache.buckets import DATA_SUFFIX
from fsblob.cache.fs import delete_calm, remove_dir_if_empty, walk_files
from fsblob.cache.writer import DIRTY_SUFFIX, IN_FLIGHT
from fsblob.exceptions import FilesystemUnavailableError
from fsblob.logging import get_logger
from fsblob.types import CacheLimits, CompactionReport, FileAndStat

logger = get_logger(__name__)


def sort_newest_first(files: list[FileAndStat]) -> list[FileAndStat]:
    """Return files sorted by mtime, newest first. Ties keep listing order."""
    return sorted(files, key=lambda f: f.mtime_ns, reverse=True)


def sum_size(files: list[FileAndStat]) -> int:
    return sum(f.size for f in files)


def scan(root: Path) -> tuple[list[FileAndStat], int]:
    """Collect entry files below root and delete stray temp files.

    Temp files of writes in progress in this process are left alone.

    Returns:
        The entry files paired with their stats, and the number of temp
        files removed.
    """
    entries: list[FileAndStat] = []
    temp_removed = 0

    for path in walk_files(root):
        if path.name.endswith(DIRTY_SUFFIX):
            if Path(os.path.abspath(path)) in IN_FLIGHT:
                continue
            if delete_calm(path):
                temp_removed += 1
                logger.debug("Removed stray temp file", path=str(path))
            continue
        if path.name.endswith(DATA_SUFFIX):
            try:
                item = FileAndStat(path, path.stat())
            except FileNotFoundError:
                continue
            except OSError as e:
                raise FilesystemUnavailableError(
                    "Cannot stat entry file",
                    context={"path": str(path), "error": str(e)},
                ) from e
            entries.append(item)

    return entries, temp_removed


def delete_oldest(files: list[FileAndStat], limits: CacheLimits) -> list[FileAndStat]:
    """Delete the oldest files until both bounds in limits are satisfied.

    Each deleted file's bucket directory is pruned if it became empty.
    A file that is already gone counts as evicted.

    Returns:
        The files that were evicted, oldest first.

    Raises:
        FilesystemUnavailableError: An entry could not be deleted.
    """
    ordered = sort_newest_first(files)
    total = sum_size(ordered)
    evicted: list[FileAndStat] = []

    while ordered and limits.exceeded(total, len(ordered)):
        item = ordered.pop()
        try:
            item.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemUnavailableError(
                "Cannot evict entry file",
                context={"path": str(item.path), "error": str(e)},
            ) from e
        remove_dir_if_empty(item.path.parent)
        total -= item.size
        evicted.append(item)

    return evicted


def compact(root: Path, limits: CacheLimits | None = None) -> CompactionReport:
    """Sweep temp files under root and enforce limits on the entries.

    With no limits (or unbounded ones) only the temp-file sweep happens.
    """
    limits = limits or CacheLimits()
    entries, temp_removed = scan(root)

    evicted = [] if limits.unbounded else delete_oldest(entries, limits)

    scanned = len(entries)
    bytes_freed = sum_size(evicted)
    report = CompactionReport(
        scanned=scanned,
        removed=[item.path for item in evicted],
        bytes_freed=bytes_freed,
        temp_files_removed=temp_removed,
        remaining_entries=scanned - len(evicted),
        remaining_bytes=sum_size(entries) - bytes_freed,
    )

    if report.removed or temp_removed:
        logger.info(
            "Compacted cache",
            removed=report.removed_count,
            bytes_freed=bytes_freed,
            temp_files_removed=temp_removed,
            remaining_entries=report.remaining_entries,
        )
    else:
        logger.debug("Compaction found nothing to remove", scanned=scanned)

    return report
