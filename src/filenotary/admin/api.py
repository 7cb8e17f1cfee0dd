"""
API routes for the administrator: listing and bulk export.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from ..auth.identity import IdentityProvider
from ..fs.archive_zip import iter_archive, plan_export
from ..fs.blobs import BlobStore
from ..records.models import UploadRecord, format_utc_z
from ..records.store import RecordStore


logger = logging.getLogger(__name__)

EXPORT_FILENAME = "uploads.zip"


class AdminUploadOut(BaseModel):
    key: str
    name: str
    email: str
    timestamp: str


def _admin_upload(record: UploadRecord) -> AdminUploadOut:
    return AdminUploadOut(
        key=record.key,
        name=record.name,
        email=record.email,
        timestamp=format_utc_z(record.timestamp),
    )


def create_admin_router(
    *,
    store: RecordStore,
    blobs: BlobStore,
    identity: IdentityProvider,
    templates: Jinja2Templates,
) -> APIRouter:
    router = APIRouter(
        prefix="/admin",
        tags=["admin"],
        dependencies=[Depends(identity.require_user)],
    )

    @router.get("/", response_class=HTMLResponse)
    def list_uploads(request: Request) -> HTMLResponse:
        uploads = [_admin_upload(record) for record in store.query()]
        return templates.TemplateResponse(
            request,
            "admin.html",
            {"uploads": uploads, "user": identity.current_user(request)},
        )

    @router.get("/api/uploads", response_model=list[AdminUploadOut])
    def list_uploads_json() -> list[AdminUploadOut]:
        return [_admin_upload(record) for record in store.query()]

    @router.get("/download")
    def download(request: Request) -> StreamingResponse:
        """
        Stream every upload as one zip archive.

        The layout is planned before streaming starts, so a missing payload
        is reported as an error page instead of a truncated download.
        """
        records = store.query()
        entries = plan_export(records, blobs)
        logger.info(
            "Admin %s exporting %d uploads (%d entries)",
            identity.current_user(request),
            len(records),
            len(entries),
        )
        return StreamingResponse(
            iter_archive(entries, blobs),
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    return router
