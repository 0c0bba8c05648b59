"""
Crash-safe writes and deletes.

A write fills a uniquely named ``.dirt`` file under the cache root and
publishes it with a single os.replace onto the entry path. Readers see
either the previous record or the new one, never a mixture. A crash
before the rename leaves at most an orphaned ``.dirt`` file, which the
next compaction sweep removes. Temp files of writes still in progress in
this process are listed in IN_FLIGHT so a sweep never removes them.

mkstemp creates files as 0600; entries are widened to what the process
umask allows, like a plainly created file.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from fsblob.cache import codec
from fsblob.cache.buckets import BucketResolver
from fsblob.cache.fs import delete_calm, ensure_dir, remove_dir_if_empty
from fsblob.exceptions import FilesystemUnavailableError, WriteInterruptedError
from fsblob.logging import get_logger

logger = get_logger(__name__)

DIRTY_SUFFIX = ".dirt"

IN_FLIGHT: set[Path] = set()


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


FILE_MODE = _default_file_mode()


class AtomicWriter:
    """Publishes entries through temp-file-then-rename."""

    def __init__(self, root: Path, resolver: BucketResolver) -> None:
        self.root = Path(root)
        self.resolver = resolver

    def _new_temp_file(self) -> tuple[int, Path]:
        try:
            fd, name = tempfile.mkstemp(suffix=DIRTY_SUFFIX, dir=self.root)
        except OSError as e:
            raise FilesystemUnavailableError(
                "Cannot create temporary file",
                context={"root": str(self.root), "error": str(e)},
            ) from e
        return fd, Path(name)

    def write(self, key: str, value: bytes) -> Path:
        """Store value under key and return the committed entry path.

        Raises:
            KeyTooLongError: The key does not fit the record header.
            WriteInterruptedError: Writing or publishing failed; the previous
                value for key, if any, is intact.
        """
        codec.encode_key(key)

        target = self.resolver.find(key) or self.resolver.propose_unique_file(key)

        fd, temp_path = self._new_temp_file()
        IN_FLIGHT.add(Path(os.path.abspath(temp_path)))
        try:
            with os.fdopen(fd, "wb") as handle:
                codec.write_record(handle, key, value)
            os.chmod(temp_path, FILE_MODE)

            ensure_dir(target.parent)
            os.replace(temp_path, target)
        except BaseException as e:
            delete_calm(temp_path)
            if isinstance(e, (OSError, FilesystemUnavailableError)):
                raise WriteInterruptedError(
                    "Write interrupted before publish",
                    context={"key": key, "temp_path": str(temp_path), "error": str(e)},
                ) from e
            raise
        finally:
            IN_FLIGHT.discard(Path(os.path.abspath(temp_path)))

        logger.debug("Wrote entry", path=str(target), size=len(value))
        return target

    def delete(self, key: str) -> bool:
        """Remove the entry for key.

        Returns:
            True if an entry was removed, False if key was absent.
        """
        path = self.resolver.find(key)
        if path is None:
            return False

        try:
            path.unlink()
        except FileNotFoundError:
            # Removed by someone else between find and unlink
            return False
        except OSError as e:
            raise FilesystemUnavailableError(
                "Cannot delete entry file",
                context={"path": str(path), "error": str(e)},
            ) from e

        remove_dir_if_empty(path.parent)
        logger.debug("Deleted entry", path=str(path))
        return True
