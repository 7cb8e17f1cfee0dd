"""
Content hashing utilities for upload records.

Uses SHA-1 for both the record key and the payload digests shown to
submitters. The record key is the digest of the submission metadata followed
by the payload bytes, truncated to a short hex prefix so it fits in a URL.

Collision model: a key of L hex characters carries 4*L bits. For n stored
records the birthday bound gives a collision probability of roughly
n**2 / 2**(4*L + 1). At the default L=10 (40 bits) that is about 4.5e-7 for
1,000 records and 4.5e-3 for 100,000 records.
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import BinaryIO, Optional

from .naming import format_rfc3339


# Hash algorithm to use
HASH_ALGORITHM = "sha1"

# Number of hex characters kept from the record key digest
KEY_LENGTH = 10

# Length of a full SHA-1 hex digest
MAX_KEY_LENGTH = 40

# Buffer size for streaming hash computation
BUFFER_SIZE = 65536  # 64 KB


def compute_bytes_sha1(data: bytes) -> str:
    """
    Compute the SHA-1 hash of bytes.

    Args:
        data: The bytes to hash.

    Returns:
        Lowercase hexadecimal hash string.
    """
    return hashlib.new(HASH_ALGORITHM, data).hexdigest()


def compute_stream_sha1(stream: BinaryIO) -> str:
    """
    Compute the SHA-1 hash from a binary stream.

    Args:
        stream: A binary stream (file-like object).

    Returns:
        Lowercase hexadecimal hash string.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    while True:
        chunk = stream.read(BUFFER_SIZE)
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.hexdigest()


def _check_key_length(length: int) -> int:
    if not 1 <= length <= MAX_KEY_LENGTH:
        raise ValueError(
            f"Key length must be between 1 and {MAX_KEY_LENGTH}, got {length}"
        )
    return length


class StreamHasher:
    """
    A write-through hasher that computes a payload digest while copying data.

    Usage:
        hasher = StreamHasher()
        for chunk in upload_stream:
            blob.write(chunk)
            hasher.update(chunk)
        sha1 = hasher.hexdigest()
    """

    def __init__(self):
        """Initialize a new stream hasher."""
        self._hasher = hashlib.new(HASH_ALGORITHM)
        self._size = 0

    def update(self, data: bytes) -> None:
        """Update the hash with more data."""
        self._hasher.update(data)
        self._size += len(data)

    def hexdigest(self) -> str:
        """Get the hexadecimal hash string."""
        return self._hasher.hexdigest()

    @property
    def size(self) -> int:
        """Get the total size of data hashed so far."""
        return self._size


class RecordKeyHasher:
    """
    Incremental computation of a record key.

    The metadata is hashed on construction; payload bytes are then fed with
    update() in order, report first and archive second. Chunk boundaries do
    not matter, only the concatenated byte sequence does.
    """

    def __init__(
        self,
        name: str,
        email: str,
        comments: str,
        *,
        timestamp: Optional[datetime] = None,
    ):
        self._hasher = hashlib.new(HASH_ALGORITHM)
        self._hasher.update(name.encode("utf-8"))
        self._hasher.update(email.encode("utf-8"))
        self._hasher.update(comments.encode("utf-8"))
        if timestamp is not None:
            self._hasher.update(format_rfc3339(timestamp).encode("utf-8"))

    def update(self, data: bytes) -> None:
        """Feed payload bytes."""
        self._hasher.update(data)

    def key(self, length: int = KEY_LENGTH) -> str:
        """Get the truncated lowercase hex key."""
        return self._hasher.hexdigest()[:_check_key_length(length)]


def compute_record_key(
    name: str,
    email: str,
    comments: str,
    report: bytes,
    archive: bytes,
    *,
    timestamp: Optional[datetime] = None,
    length: int = KEY_LENGTH,
) -> str:
    """
    Compute the record key of a submission.

    Args:
        name: Submitter name.
        email: Submitter email.
        comments: Free-text comments (may be empty).
        report: Raw report bytes.
        archive: Raw archive bytes.
        timestamp: If given, its RFC 3339 form is hashed after the comments.
        length: Number of hex characters to keep (1..40).

    Returns:
        The first `length` characters of the lowercase SHA-1 hex digest.

    Raises:
        ValueError: If length is out of range.
    """
    _check_key_length(length)
    hasher = RecordKeyHasher(name, email, comments, timestamp=timestamp)
    hasher.update(report)
    hasher.update(archive)
    return hasher.key(length)
