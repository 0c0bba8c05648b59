"""Shared helpers for fsblob tests."""

from __future__ import annotations

import os
from pathlib import Path


def collide(key: str) -> str:
    """Degenerate hash sending every key to the same bucket."""
    return "same"


def set_mtime(path: Path, seconds: int) -> None:
    """Pin a file's modified time so eviction order is deterministic."""
    ns = seconds * 1_000_000_000
    os.utime(path, ns=(ns, ns))


def entry_files(root: Path) -> list[Path]:
    """All committed entry files below root."""
    return sorted(root.rglob("*.dat"))


def temp_files(root: Path) -> list[Path]:
    """All uncommitted temp files below root."""
    return sorted(root.rglob("*.dirt"))
