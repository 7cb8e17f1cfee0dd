"""
API routes for submitting uploads and viewing a single upload.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from ..fs.blobs import BlobStore
from ..mail.sender import MailSender, send_best_effort
from ..records.models import UploadRecord, format_utc_z
from ..records.store import RecordNotFoundError, RecordStore
from ..settings.models import NotarySettings
from .operations import (
    PayloadUpload,
    SubmissionError,
    SubmissionForm,
    build_confirmation,
    register_submission,
)


VIEW_PATH = "/upload/"


class PayloadOut(BaseModel):
    sha1: str
    size: int
    filename: Optional[str] = None


class UploadOut(BaseModel):
    """Public view of one upload. The email address is not exposed."""
    key: str
    name: str
    timestamp: str
    report: PayloadOut
    archive: PayloadOut


def _public_upload(record: UploadRecord) -> UploadOut:
    return UploadOut(
        key=record.key,
        name=record.name,
        timestamp=format_utc_z(record.timestamp),
        report=PayloadOut(
            sha1=record.report.sha1,
            size=record.report.size,
            filename=record.report.filename,
        ),
        archive=PayloadOut(
            sha1=record.archive.sha1,
            size=record.archive.size,
            filename=record.archive.filename,
        ),
    )


def _payload_field(value: Any) -> Optional[PayloadUpload]:
    # Browsers send an empty part with no filename when no file was chosen
    if not isinstance(value, UploadFile) or not value.filename:
        return None
    return PayloadUpload(stream=value.file, filename=value.filename, content_type=value.content_type)


def create_submission_router(
    *,
    store: RecordStore,
    blobs: BlobStore,
    settings: NotarySettings,
    mailer: MailSender,
    templates: Jinja2Templates,
) -> APIRouter:
    """
    Create the submission router.

    Args:
        store: Record store for new and viewed uploads.
        blobs: Blob store receiving the payloads.
        settings: Application settings (key options, email pattern, base URL).
        mailer: Sender of confirmation mails.
        templates: Page templates.

    Returns:
        FastAPI router with the upload form, submission and view endpoints.
    """
    router = APIRouter(tags=["submissions"])

    def _lookup(key: str) -> UploadRecord:
        try:
            return store.get(key)
        except RecordNotFoundError as exc:
            raise HTTPException(status_code=404, detail=f"No upload registered under {key}") from exc

    @router.get("/", response_class=HTMLResponse)
    def upload_form(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(request, "upload.html", {})

    @router.post("/")
    async def submit(request: Request, background_tasks: BackgroundTasks) -> RedirectResponse:
        """
        Register a submission and redirect to its permanent view page.

        The confirmation mail goes out after the response has been sent.
        """
        form = await request.form()
        try:
            submission = SubmissionForm(
                name=str(form.get("name") or ""),
                email=str(form.get("email") or ""),
                comments=str(form.get("comments") or ""),
                report=_payload_field(form.get("report")),
                archive=_payload_field(form.get("archive")),
            )
            try:
                record = await run_in_threadpool(
                    register_submission,
                    submission,
                    store=store,
                    blobs=blobs,
                    settings=settings,
                )
            except SubmissionError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        finally:
            await form.close()

        subject, body = build_confirmation(record, settings.view_url(record.key))
        background_tasks.add_task(send_best_effort, mailer, record.email, subject, body)

        return RedirectResponse(f"{VIEW_PATH}{record.key}", status_code=302)

    @router.get(VIEW_PATH + "{key}", response_class=HTMLResponse)
    def show_upload(request: Request, key: str) -> HTMLResponse:
        upload = _public_upload(_lookup(key))
        return templates.TemplateResponse(request, "singleupload.html", {"upload": upload})

    @router.get("/api/uploads/{key}", response_model=UploadOut)
    def get_upload(key: str) -> UploadOut:
        return _public_upload(_lookup(key))

    return router
