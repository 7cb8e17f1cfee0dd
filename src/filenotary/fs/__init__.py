"""
File system utilities for upload payloads.

Provides:
- Record keys and payload digests (hashing.py)
- Path sanitization and archive naming (naming.py)
- Blob storage for payload bytes (blobs.py)
- Bulk export into one zip stream (archive_zip.py)
"""

from .hashing import RecordKeyHasher, StreamHasher, compute_bytes_sha1, compute_record_key
from .naming import is_valid_record_key, record_dirname, sanitize_segment, submitter_dirname
from .blobs import BlobInfo, BlobNotFoundError, BlobStore
from .archive_zip import (
    ArchiveEntry,
    ArchiveExportError,
    ArchiveResult,
    iter_archive,
    plan_export,
    write_archive,
)

__all__ = [
    "RecordKeyHasher",
    "StreamHasher",
    "compute_bytes_sha1",
    "compute_record_key",
    "is_valid_record_key",
    "record_dirname",
    "sanitize_segment",
    "submitter_dirname",
    "BlobInfo",
    "BlobNotFoundError",
    "BlobStore",
    "ArchiveEntry",
    "ArchiveExportError",
    "ArchiveResult",
    "iter_archive",
    "plan_export",
    "write_archive",
]
