"""
Archive export of all upload records into a single zip stream.

Used by the admin download to hand out every submission at once. The layout
is computed up front (plan_export) so a missing blob fails before any byte
has been sent; the archive itself is then streamed entry by entry.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, Iterable, Iterator, NamedTuple, Optional

from ..records.models import UploadRecord
from .blobs import BlobNotFoundError, BlobStore
from .hashing import BUFFER_SIZE
from .naming import payload_filename, record_dirname


logger = logging.getLogger(__name__)

COMMENTS_NAME = "comments.txt"
REPORT_NAME = "report.pdf"
ARCHIVE_NAME = "src.zip"

# Earliest timestamp a zip entry can carry
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


class ArchiveExportError(RuntimeError):
    """Raised when an export cannot be completed. The archive is unusable."""


class ArchiveResult(NamedTuple):
    """Result of an archive export."""
    entries_written: int
    bytes_archived: int


@dataclass(frozen=True)
class ArchiveEntry:
    """
    One file inside the export archive.

    Exactly one of `data` (inline content) or `blob_handle` is set.
    """
    arcname: str
    date_time: tuple[int, int, int, int, int, int]
    size: int
    data: Optional[bytes] = None
    blob_handle: Optional[str] = None


def _zip_date_time(dt: datetime) -> tuple[int, int, int, int, int, int]:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    stamp = tuple(dt.astimezone(timezone.utc).timetuple()[:6])
    return max(stamp, _ZIP_EPOCH)


def comments_text(record: UploadRecord) -> str:
    """Content of comments.txt: the comments plus a submitter trailer."""
    return f"{record.comments}\n\n{record.name} ({record.email})\n"


def plan_record(record: UploadRecord, blobs: BlobStore) -> list[ArchiveEntry]:
    """
    Compute the three archive entries of one record.

    Raises:
        BlobNotFoundError: If a payload handle does not resolve.
    """
    directory = record_dirname(record.name, record.email, record.timestamp, record.key)
    date_time = _zip_date_time(record.timestamp)

    report_info = blobs.stat(record.report.handle)
    archive_info = blobs.stat(record.archive.handle)

    report_name = payload_filename(
        report_info.filename or record.report.filename,
        REPORT_NAME,
        taken={COMMENTS_NAME, ARCHIVE_NAME},
    )
    archive_name = payload_filename(
        archive_info.filename or record.archive.filename,
        ARCHIVE_NAME,
        taken={COMMENTS_NAME, report_name},
    )

    comments = comments_text(record).encode("utf-8")
    return [
        ArchiveEntry(
            arcname=f"{directory}/{COMMENTS_NAME}",
            date_time=date_time,
            size=len(comments),
            data=comments,
        ),
        ArchiveEntry(
            arcname=f"{directory}/{report_name}",
            date_time=date_time,
            size=report_info.size,
            blob_handle=record.report.handle,
        ),
        ArchiveEntry(
            arcname=f"{directory}/{archive_name}",
            date_time=date_time,
            size=archive_info.size,
            blob_handle=record.archive.handle,
        ),
    ]


def plan_export(records: Iterable[UploadRecord], blobs: BlobStore) -> list[ArchiveEntry]:
    """
    Compute the full archive layout for a sequence of records.

    Records keep the order they are given in (timestamp, then email, when
    they come from RecordStore.query).

    Args:
        records: Records to export.
        blobs: Store resolving the payload handles.

    Returns:
        Archive entries in write order.

    Raises:
        ArchiveExportError: If a payload is missing or two entries would
            share a path.
    """
    entries: list[ArchiveEntry] = []
    seen: set[str] = set()

    for record in records:
        try:
            record_entries = plan_record(record, blobs)
        except (BlobNotFoundError, OSError, ValueError) as exc:
            raise ArchiveExportError(f"cannot resolve payloads of record {record.key}: {exc!r}") from exc

        for entry in record_entries:
            # Paths differing only in case overwrite each other on extraction
            folded = entry.arcname.casefold()
            if folded in seen:
                raise ArchiveExportError(f"duplicate archive path: {entry.arcname}")
            seen.add(folded)
            entries.append(entry)

    return entries


class _ChunkSink:
    """Write-only, non-seekable target collecting what zipfile emits."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        if data:
            self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> Iterator[bytes]:
        if self._chunks:
            chunks, self._chunks = self._chunks, []
            yield b"".join(chunks)


def _entry_chunks(entry: ArchiveEntry, blobs: BlobStore, chunk_size: int) -> Iterator[bytes]:
    if entry.data is not None:
        yield entry.data
        return

    with blobs.open(entry.blob_handle) as src:
        while True:
            chunk = src.read(chunk_size)
            if not chunk:
                break
            yield chunk


def iter_archive(
    entries: Iterable[ArchiveEntry],
    blobs: BlobStore,
    *,
    chunk_size: int = BUFFER_SIZE,
) -> Iterator[bytes]:
    """
    Stream a zip archive containing the given entries.

    Entries are deflated and written sequentially; payloads are copied from
    the blob store in chunks of `chunk_size` bytes.

    Yields:
        Consecutive pieces of the zip file.

    Raises:
        ArchiveExportError: On any I/O failure. Output already yielded does
            not form a valid archive.
    """
    sink = _ChunkSink()
    written = 0
    try:
        with zipfile.ZipFile(sink, "w", zipfile.ZIP_DEFLATED) as zf:
            for entry in entries:
                info = zipfile.ZipInfo(entry.arcname, date_time=entry.date_time)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                # Lets zipfile pick zip64 headers for large payloads
                info.file_size = entry.size

                with zf.open(info, "w") as dst:
                    for chunk in _entry_chunks(entry, blobs, chunk_size):
                        dst.write(chunk)
                        yield from sink.drain()
                written += 1
                yield from sink.drain()
    except (OSError, BlobNotFoundError, RuntimeError, zipfile.LargeZipFile) as exc:
        logger.error("Archive export aborted after %d entries: %r", written, exc)
        raise ArchiveExportError(f"archive export failed after {written} entries: {exc!r}") from exc

    yield from sink.drain()


def write_archive(
    records: Iterable[UploadRecord],
    blobs: BlobStore,
    out: BinaryIO,
) -> ArchiveResult:
    """
    Export records into a zip written to `out`.

    Args:
        records: Records in export order.
        blobs: Store resolving the payload handles.
        out: Writable binary stream; it need not be seekable.

    Returns:
        ArchiveResult with the number of entries and payload bytes.

    Raises:
        ArchiveExportError: If any payload is missing or any write fails.
    """
    entries = plan_export(records, blobs)
    logger.info("Exporting %d archive entries", len(entries))

    for chunk in iter_archive(entries, blobs):
        try:
            out.write(chunk)
        except OSError as exc:
            raise ArchiveExportError(f"cannot write archive: {exc!r}") from exc

    return ArchiveResult(
        entries_written=len(entries),
        bytes_archived=sum(entry.size for entry in entries),
    )
