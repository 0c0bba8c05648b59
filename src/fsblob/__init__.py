"""
fsblob: a filesystem-backed key/value store for binary blobs.
"""

from fsblob.cache import DiskCache, md5_hex
from fsblob.exceptions import (
    ConfigurationError,
    CorruptRecordError,
    FilesystemUnavailableError,
    FsBlobError,
    InvalidHashError,
    KeyTooLongError,
    WriteInterruptedError,
)
from fsblob.types import CacheLimits, CompactionReport, TimestampPolicy

__version__ = "0.1.0"

__all__ = [
    "CacheLimits",
    "CompactionReport",
    "ConfigurationError",
    "CorruptRecordError",
    "DiskCache",
    "FilesystemUnavailableError",
    "FsBlobError",
    "InvalidHashError",
    "KeyTooLongError",
    "TimestampPolicy",
    "WriteInterruptedError",
    "md5_hex",
]
