"""
Custom exception hierarchy for the fsblob storage engine.

All exceptions inherit from FsBlobError, which provides optional context
for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class FsBlobError(Exception):
    """Base exception for all fsblob errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(FsBlobError):
    """Raised when cache configuration is invalid.

    Examples:
        - Negative size or entry limits
        - Unknown timestamp policy
    """

    pass


class CorruptRecordError(FsBlobError):
    """Raised when an entry file cannot be decoded.

    Context should include:
        - path: The entry file, when known
        - reason: What was wrong (version, truncated header, bad UTF-8)
    """

    pass


class FilesystemUnavailableError(FsBlobError):
    """Raised when the filesystem fails in an unexpected way.

    Wraps the underlying OSError (permissions, disk full, I/O failure).

    Context should include:
        - path: The path being accessed
        - operation: What the engine was doing
    """

    pass


class WriteInterruptedError(FilesystemUnavailableError):
    """Raised when a write fails before its publishing rename.

    The previous value for the key, if any, is left untouched.

    Context should include:
        - key: The key being written
        - temp_path: The temporary file that was being filled
    """

    pass


class KeyTooLongError(FsBlobError, ValueError):
    """Raised when a key's UTF-8 encoding does not fit the 16-bit length field."""

    pass


class InvalidHashError(FsBlobError, ValueError):
    """Raised when the key hash function returns an unusable directory name."""

    pass
