"""
Cache package for binary blob storage.

This package provides the filesystem-backed cache and its layers:
- Key codec (codec.py): self-describing entry records
- Bucket resolver (buckets.py): key hash directories and key verification
- Atomic writer (writer.py): temp-file-then-rename publishing
- Eviction (eviction.py): FIFO/LRU compaction by size and count
- Disk cache (disk_cache.py): the composed async cache
"""

from fsblob.cache.buckets import md5_hex
from fsblob.cache.disk_cache import DiskCache

__all__ = ["DiskCache", "md5_hex"]
