"""
Tests for atomic writes and deletes.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from fsblob.cache.buckets import BucketResolver
from fsblob.cache.writer import FILE_MODE, IN_FLIGHT, AtomicWriter
from fsblob.exceptions import KeyTooLongError, WriteInterruptedError
from helpers import collide, entry_files, temp_files


@pytest.fixture
def writer(temp_dir: Path) -> AtomicWriter:
    return AtomicWriter(temp_dir, BucketResolver(temp_dir / "v1"))


class TestWrite:
    """Tests for publishing entries."""

    def test_write_creates_bucket_and_entry(self, writer: AtomicWriter, temp_dir: Path) -> None:
        """Test that a write lands in the key's bucket."""
        path = writer.write("A", b"\x01\x02\x03")

        assert path.parent == writer.resolver.bucket_path("A")
        assert path.name == "0.dat"
        assert writer.resolver.read("A") == (path, b"\x01\x02\x03")
        assert temp_files(temp_dir) == []

    def test_overwrite_reuses_path(self, writer: AtomicWriter, temp_dir: Path) -> None:
        """Test that a key keeps one file across overwrites."""
        first = writer.write("A", b"old")
        second = writer.write("A", b"new")

        assert first == second
        assert entry_files(temp_dir) == [first]
        assert writer.resolver.read("A") == (first, b"new")

    def test_colliding_keys_get_distinct_files(self, temp_dir: Path) -> None:
        """Test that keys sharing a bucket do not overwrite each other."""
        writer = AtomicWriter(temp_dir, BucketResolver(temp_dir / "v1", key_to_hash=collide))
        a = writer.write("a", b"1")
        b = writer.write("b", b"2")

        assert a != b
        assert a.parent == b.parent
        assert writer.resolver.read("a") == (a, b"1")
        assert writer.resolver.read("b") == (b, b"2")

    def test_accepts_bytearray_and_memoryview(self, writer: AtomicWriter) -> None:
        """Test bytes-like values."""
        writer.write("ba", bytearray(b"xy"))
        writer.write("mv", memoryview(b"zw"))

        assert writer.resolver.read("ba")[1] == b"xy"
        assert writer.resolver.read("mv")[1] == b"zw"

    def test_entry_mode_follows_umask(self, writer: AtomicWriter) -> None:
        """Test that published entries get the usual umask-derived permissions."""
        path = writer.write("A", b"1")

        assert path.stat().st_mode & 0o777 == FILE_MODE
        assert FILE_MODE & 0o600 == 0o600

    def test_finished_write_is_not_in_flight(self, writer: AtomicWriter) -> None:
        """Test that the temp file registry is emptied after a write."""
        writer.write("A", b"1")

        assert IN_FLIGHT == set()

    def test_too_long_key_touches_nothing(self, writer: AtomicWriter, temp_dir: Path) -> None:
        """Test that an oversized key fails before any file is created."""
        with pytest.raises(KeyTooLongError):
            writer.write("k" * 70000, b"v")

        assert list(temp_dir.iterdir()) == []


class TestInterruptedWrite:
    """Tests for failures between temp-file creation and rename."""

    def test_failed_rename_keeps_previous_value(
        self, writer: AtomicWriter, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a crash before publish leaves the old value readable."""
        path = writer.write("A", b"old")

        def fail_replace(src: str, dst: str) -> None:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "replace", fail_replace)

        with pytest.raises(WriteInterruptedError) as exc_info:
            writer.write("A", b"new")

        monkeypatch.undo()
        assert writer.resolver.read("A") == (path, b"old")
        assert temp_files(temp_dir) == []
        assert exc_info.value.context["key"] == "A"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_failed_first_write_leaves_nothing(
        self, writer: AtomicWriter, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that an interrupted write of a new key stores nothing."""

        def fail_replace(src: str, dst: str) -> None:
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(os, "replace", fail_replace)

        with pytest.raises(WriteInterruptedError):
            writer.write("A", b"new")

        monkeypatch.undo()
        assert entry_files(temp_dir) == []
        assert temp_files(temp_dir) == []
        assert writer.resolver.read("A") is None


class TestDelete:
    """Tests for removing entries."""

    def test_delete_absent_key(self, writer: AtomicWriter, temp_dir: Path) -> None:
        """Test that deleting a missing key reports False and changes nothing."""
        assert writer.delete("missing") is False
        assert list(temp_dir.iterdir()) == []

    def test_delete_removes_file_and_empty_bucket(self, writer: AtomicWriter) -> None:
        """Test that the bucket directory goes away with its last entry."""
        path = writer.write("A", b"1")

        assert writer.delete("A") is True
        assert not path.exists()
        assert not path.parent.exists()
        assert writer.delete("A") is False

    def test_delete_keeps_bucket_with_other_entries(self, temp_dir: Path) -> None:
        """Test that a shared bucket survives deleting one of its keys."""
        writer = AtomicWriter(temp_dir, BucketResolver(temp_dir / "v1", key_to_hash=collide))
        writer.write("a", b"1")
        b = writer.write("b", b"2")

        assert writer.delete("a") is True
        assert b.parent.exists()
        assert writer.resolver.read("b") == (b, b"2")
