"""
Thin filesystem adapter used by the cache layers.

Every function here is a small wrapper over a system call. Races around
directory existence and emptiness are recovered locally; anything else
unexpected is raised as FilesystemUnavailableError.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Iterator

from fsblob.exceptions import FilesystemUnavailableError
from fsblob.logging import get_logger

logger = get_logger(__name__)

_DIR_NOT_EMPTY = {errno.ENOTEMPTY, errno.EEXIST}


def ensure_dir(path: Path) -> None:
    """Create a directory and its parents; an existing one is fine."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemUnavailableError(
            "Cannot create directory",
            context={"path": str(path), "error": str(e)},
        ) from e


def list_files(directory: Path, suffix: str) -> list[Path]:
    """List regular files in one directory whose names end with suffix.

    A missing directory yields an empty list.
    """
    try:
        with os.scandir(directory) as it:
            return [
                Path(entry.path)
                for entry in it
                if entry.name.endswith(suffix) and entry.is_file()
            ]
    except FileNotFoundError:
        return []
    except OSError as e:
        raise FilesystemUnavailableError(
            "Cannot list directory",
            context={"path": str(directory), "error": str(e)},
        ) from e


def walk_files(root: Path) -> Iterator[Path]:
    """Yield every regular file below root, recursively."""

    def _raise(e: OSError) -> None:
        if isinstance(e, FileNotFoundError):
            return
        raise FilesystemUnavailableError(
            "Cannot list directory",
            context={"path": str(e.filename), "error": str(e)},
        ) from e

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        for name in filenames:
            yield Path(dirpath) / name


def delete_calm(path: Path) -> bool:
    """Delete a file, logging instead of raising on failure.

    Returns:
        True if the file was removed by this call.
    """
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Failed to delete file", path=str(path), error=str(e))
        return False


def remove_dir_if_empty(directory: Path) -> bool:
    """Remove a directory only if it is empty.

    A non-empty or already missing directory is not an error: another
    writer may have repopulated or removed it.
    """
    try:
        directory.rmdir()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        if e.errno not in _DIR_NOT_EMPTY:
            logger.warning(
                "Unexpected error removing directory",
                path=str(directory),
                errno=e.errno,
            )
        return False


def touch(path: Path) -> bool:
    """Set a file's modified time to now.

    Files in a cache directory may vanish at any time, so failures are
    logged and reported rather than raised.
    """
    try:
        os.utime(path, None)
        return True
    except OSError as e:
        logger.warning("Cannot set timestamp", path=str(path), error=str(e))
        return False
