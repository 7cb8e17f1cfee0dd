"""
Registration of new uploads.

A submission is validated, both payloads are copied into the blob store while
the record key is computed over the same bytes, and the record is stored
under that key.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Callable, Optional

from ..fs.blobs import BlobStore
from ..fs.hashing import RecordKeyHasher
from ..records.models import PayloadRef, UploadRecord, utc_now
from ..records.store import RecordStore
from ..settings.models import NotarySettings


logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Your upload is registered with the File Notary"


class SubmissionError(ValueError):
    """Raised when a submission is incomplete or malformed."""


@dataclass
class PayloadUpload:
    """An uploaded file as received from the client."""
    stream: BinaryIO
    filename: Optional[str] = None
    content_type: Optional[str] = None


@dataclass
class SubmissionForm:
    name: str
    email: str
    comments: str = ""
    report: Optional[PayloadUpload] = None
    archive: Optional[PayloadUpload] = None


def validate_submission(form: SubmissionForm, *, email_pattern: str) -> tuple[PayloadUpload, PayloadUpload]:
    """
    Check that a submission can be registered.

    Returns:
        The report and archive uploads.

    Raises:
        SubmissionError: With a message meant for the submitter.
    """
    if not form.name.strip():
        raise SubmissionError("Please provide a name")
    if not re.match(email_pattern, form.email.strip()):
        raise SubmissionError("Please provide a proper institutional email")
    if form.report is None:
        raise SubmissionError("Please provide a PDF file")
    if form.archive is None:
        raise SubmissionError("Please provide a zip file")
    return form.report, form.archive


def _store_payload(blobs: BlobStore, upload: PayloadUpload, hasher: RecordKeyHasher) -> PayloadRef:
    info = blobs.put_stream(
        upload.stream,
        filename=upload.filename,
        content_type=upload.content_type,
        on_chunk=hasher.update,
    )
    return PayloadRef(handle=info.handle, sha1=info.sha1, size=info.size, filename=info.filename)


def register_submission(
    form: SubmissionForm,
    *,
    store: RecordStore,
    blobs: BlobStore,
    settings: NotarySettings,
    now: Callable[[], datetime] = utc_now,
) -> UploadRecord:
    """
    Validate and store a submission.

    The report is copied before the archive so the key covers
    name, email, comments, [timestamp,] report bytes, archive bytes.

    An identical earlier submission is kept as is: its record is returned
    and the payloads copied for this one are removed again.

    Returns:
        The stored record.

    Raises:
        SubmissionError: If validation fails. Nothing is stored.
        OSError, RecordStoreError: If storage fails. Payloads already
            written for this submission are removed again.
    """
    report_upload, archive_upload = validate_submission(form, email_pattern=settings.email_pattern)

    name = form.name.strip()
    email = form.email.strip()
    comments = form.comments or ""
    timestamp = now()

    hasher = RecordKeyHasher(
        name,
        email,
        comments,
        timestamp=timestamp if settings.key_includes_timestamp else None,
    )

    written: list[str] = []
    try:
        report = _store_payload(blobs, report_upload, hasher)
        written.append(report.handle)
        archive = _store_payload(blobs, archive_upload, hasher)
        written.append(archive.handle)

        record = UploadRecord(
            key=hasher.key(settings.key_length),
            name=name,
            email=email,
            comments=comments,
            timestamp=timestamp,
            report=report,
            archive=archive,
        )
        stored = store.put_if_absent(record)
    except Exception:
        for handle in written:
            blobs.delete(handle)
        raise

    if stored is not record:
        # Same content as an earlier submission; keep the first record
        for handle in written:
            blobs.delete(handle)
        logger.info("Upload %s was already registered at %s", stored.key, stored.timestamp)
        return stored

    logger.info("Registered upload %s from %s", record.key, record.email)
    return record


def build_confirmation(record: UploadRecord, view_url: str) -> tuple[str, str]:
    """
    Subject and HTML body of the confirmation mail.

    Submitter-provided text is escaped.
    """
    body = (
        f"<p>Thank you {html.escape(record.name)}</p>\n"
        "<p>Your upload is now registered, you can see what is registered at:<br>\n"
        f'<a href="{html.escape(view_url, quote=True)}">{html.escape(view_url)}</a></p>\n'
        f"<p>Report SHA-1: <code>{record.report.sha1}</code><br>\n"
        f"Archive SHA-1: <code>{record.archive.sha1}</code></p>\n"
        "<p>Cheers,<br>\nThe File Notary</p>\n"
    )
    return CONFIRMATION_SUBJECT, body
