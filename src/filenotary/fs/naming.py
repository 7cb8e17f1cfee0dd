"""
Path naming conventions for exported uploads.

Archive layout, one subtree per record:

    <name>_<email>/<YYYY-MM-DDTHH:MM:SSZ>_<key>/comments.txt
    <name>_<email>/<YYYY-MM-DDTHH:MM:SSZ>_<key>/report.pdf
    <name>_<email>/<YYYY-MM-DDTHH:MM:SSZ>_<key>/src.zip

- name, email: sanitized submitter name and email
- timestamp: record creation time in UTC
- key: the record key, which keeps resubmissions apart
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Collection, Optional


# Any character outside this set is replaced in path segments
UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._:@]")

# Record keys are truncated lowercase SHA-1 hex digests
RECORD_KEY_PATTERN = re.compile(r"[0-9a-f]{1,40}")

REPLACEMENT = "_"

# Segments that would escape or alias their parent directory
RESERVED_SEGMENTS = frozenset({"", ".", ".."})


def sanitize_segment(text: str) -> str:
    """
    Make a string safe to use as a single path segment.

    Every character outside [A-Za-z0-9._:@] becomes an underscore, so the
    result never contains a path separator. Applying it twice is a no-op.

    Args:
        text: Arbitrary text.

    Returns:
        Sanitized string of the same length.
    """
    return UNSAFE_CHARS.sub(REPLACEMENT, text)


def submitter_dirname(name: str, email: str) -> str:
    """Top-level directory for a submitter: <name>_<email>."""
    return f"{sanitize_segment(name)}_{sanitize_segment(email)}"


def format_rfc3339(dt: datetime) -> str:
    """
    Format a timestamp as RFC 3339 in UTC with second precision.

    Naive datetimes are taken to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def record_dirname(name: str, email: str, timestamp: datetime, key: str) -> str:
    """
    Directory of one record inside an export archive.

    Returns:
        <name>_<email>/<timestamp>_<key>
    """
    return f"{submitter_dirname(name, email)}/{format_rfc3339(timestamp)}_{key}"


def payload_filename(
    original: Optional[str],
    default: str,
    taken: Collection[str] = (),
) -> str:
    """
    Choose the file name of a payload inside its record directory.

    The sanitized original client filename wins when it is usable; otherwise
    the default name is used.

    Args:
        original: Filename recorded with the blob, if any.
        default: Fallback name (e.g. "report.pdf").
        taken: Names already used in the same record directory. Compared
            case-insensitively.

    Returns:
        A single safe path segment.
    """
    if original:
        # Browsers on Windows may send the full client path
        base = original.replace("\\", "/").rsplit("/", 1)[-1]
        candidate = sanitize_segment(base)
        used = {name.casefold() for name in taken}
        if candidate not in RESERVED_SEGMENTS and candidate.casefold() not in used:
            return candidate
    return default


def is_valid_record_key(text: str) -> bool:
    """Check that a lookup key looks like a record key."""
    return RECORD_KEY_PATTERN.fullmatch(text) is not None
