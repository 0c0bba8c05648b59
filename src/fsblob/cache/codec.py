"""
Entry record codec.

Every entry file is self-describing, so any candidate in a bucket can be
checked against the query key without a separate index:

    byte 0      format version (currently 1)
    bytes 1..2  key length, unsigned 16-bit big-endian, in UTF-8 bytes
    bytes 3..N  key, UTF-8
    rest        value bytes, to end of file
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from fsblob.exceptions import CorruptRecordError, KeyTooLongError

FORMAT_VERSION = 1
SUPPORTED_VERSIONS = frozenset({1})

HEADER_FMT = ">BH"  # version, key length
HEADER_SIZE = struct.calcsize(HEADER_FMT)
MAX_KEY_BYTES = 0xFFFF

READ_CHUNK_SIZE = 128 * 1024


def encode_key(key: str) -> bytes:
    """Return the UTF-8 bytes of key, rejecting keys the header cannot hold."""
    key_bytes = key.encode("utf-8")
    if len(key_bytes) > MAX_KEY_BYTES:
        raise KeyTooLongError(
            "Key is too long for the record header",
            context={"key_bytes": len(key_bytes), "max_key_bytes": MAX_KEY_BYTES},
        )
    return key_bytes


def encode_header(key: str) -> bytes:
    key_bytes = encode_key(key)
    return struct.pack(HEADER_FMT, FORMAT_VERSION, len(key_bytes)) + key_bytes


def encode(key: str, value: bytes) -> bytes:
    """Encode a full record in memory."""
    return encode_header(key) + bytes(value)


def write_record(handle: BinaryIO, key: str, value: bytes) -> None:
    """Write a record to an open binary handle without copying the value."""
    handle.write(encode_header(key))
    handle.write(value)


def decode_key(handle: BinaryIO) -> str:
    """Read the header from the start of handle and return the embedded key.

    Leaves the handle positioned at the first value byte.

    Raises:
        CorruptRecordError: Unsupported version, truncated header or bad UTF-8.
    """
    header = handle.read(HEADER_SIZE)
    if len(header) < HEADER_SIZE:
        raise CorruptRecordError(
            "Truncated record header", context={"reason": "truncated_header"}
        )

    version, key_len = struct.unpack(HEADER_FMT, header)
    if version not in SUPPORTED_VERSIONS:
        raise CorruptRecordError(
            "Unsupported record version",
            context={"reason": "unsupported_version", "version": version},
        )

    key_bytes = handle.read(key_len)
    if len(key_bytes) < key_len:
        raise CorruptRecordError(
            "Declared key length exceeds record length",
            context={"reason": "truncated_key", "declared": key_len, "found": len(key_bytes)},
        )

    try:
        return key_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CorruptRecordError(
            "Record key is not valid UTF-8", context={"reason": "bad_utf8"}
        ) from e


def read_value(handle: BinaryIO) -> bytes:
    """Read the remainder of handle in fixed-size chunks."""
    chunks = []
    for chunk in iter(lambda: handle.read(READ_CHUNK_SIZE), b""):
        chunks.append(chunk)
    return b"".join(chunks)


def decode_if_match(handle: BinaryIO, key: str) -> bytes | None:
    """Return the value stored in handle if its embedded key equals key.

    The value is only read after the key matched, so unrelated large
    blobs in the same bucket are never loaded.
    """
    if decode_key(handle) != key:
        return None
    return read_value(handle)
