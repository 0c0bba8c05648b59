"""
Base classes for caching.

CacheProtocol is the async interface shared by cache implementations:
- read/write/delete of binary values by string key
- existence checks that do not load the value
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class CacheProtocol(ABC):
    """Abstract interface for binary blob caches."""

    @abstractmethod
    async def read(self, key: str) -> bytes | None:
        """Get a value from the cache, or None if absent."""
        ...

    @abstractmethod
    async def write(self, key: str, value: bytes | None) -> Path | None:
        """Store a value in the cache. None removes the key."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a value from the cache."""
        ...

    @abstractmethod
    async def contains(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        ...
