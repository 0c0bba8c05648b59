"""
Bucket resolution: key -> hash directory -> matching entry file.

A bucket is a directory named by the hash of a key. Different keys may
share a bucket (hash collision); every candidate file embeds its key, so a
lookup verifies the key instead of trusting the filename. Weak index,
strong verification.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from fsblob.cache import codec
from fsblob.cache.fs import list_files
from fsblob.exceptions import CorruptRecordError, FilesystemUnavailableError, InvalidHashError
from fsblob.logging import get_logger

logger = get_logger(__name__)

DATA_SUFFIX = ".dat"

KeyToHash = Callable[[str], str]

T = TypeVar("T")


def md5_hex(key: str) -> str:
    """Default key hash: hex MD5 of the UTF-8 key.

    Used for its even distribution and fixed length, not for security.
    """
    return hashlib.md5(key.encode("utf-8")).hexdigest()


def _validate_hash(value: str) -> str:
    if (
        not value
        or value in (".", "..")
        or os.sep in value
        or (os.altsep and os.altsep in value)
    ):
        raise InvalidHashError(
            "Key hash is not a valid directory name", context={"hash": value}
        )
    return value


class BucketResolver:
    """Maps keys to bucket directories and finds the file holding a key."""

    def __init__(self, data_dir: Path, key_to_hash: KeyToHash = md5_hex) -> None:
        self.data_dir = Path(data_dir)
        self.key_to_hash = key_to_hash

    def bucket_path(self, key: str) -> Path:
        """Directory that holds (or would hold) the entry for key."""
        return self.data_dir / _validate_hash(self.key_to_hash(key))

    def candidates(self, key: str) -> Iterator[Path]:
        """Yield existing entry files that may hold key, in listing order."""
        yield from list_files(self.bucket_path(key), DATA_SUFFIX)

    def _open_record(self, path: Path, reader: Callable[..., T], *args: object) -> T | None:
        """Run reader on an open entry file.

        A file that vanished or is corrupt yields None; other I/O
        failures are raised.
        """
        try:
            with path.open("rb") as handle:
                return reader(handle, *args)
        except FileNotFoundError:
            return None
        except CorruptRecordError as e:
            logger.warning("Skipping corrupt record", **{**e.context, "path": str(path)})
            return None
        except OSError as e:
            raise FilesystemUnavailableError(
                "Cannot read entry file",
                context={"path": str(path), "error": str(e)},
            ) from e

    def read_key(self, path: Path) -> str | None:
        """Return the key embedded in an entry file, or None if unreadable."""
        return self._open_record(path, codec.decode_key)

    def find(self, key: str) -> Path | None:
        """Return the entry file whose embedded key equals key."""
        for path in self.candidates(key):
            if self.read_key(path) == key:
                return path
        return None

    def read(self, key: str) -> tuple[Path, bytes] | None:
        """Return the entry file and value for key, or None if absent."""
        for path in self.candidates(key):
            value = self._open_record(path, codec.decode_if_match, key)
            if value is not None:
                return path, value
        return None

    def propose_unique_file(self, key: str) -> Path:
        """Lowest unused ``<n>.dat`` name in the bucket for key."""
        bucket = self.bucket_path(key)
        i = 0
        while True:
            candidate = bucket / f"{i}{DATA_SUFFIX}"
            if not candidate.exists():
                return candidate
            i += 1
