from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .admin.api import create_admin_router
from .auth.api import create_auth_router
from .auth.identity import IdentityProvider, LoginRequiredError
from .fs.blobs import BlobStore
from .mail.sender import AppriseMailSender, MailSender
from .records.store import RecordStore
from .settings.models import NotarySettings
from .settings.store import load_settings
from .submissions.api import create_submission_router


logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

GENERIC_ERROR = "The request could not be completed. Please try again later."


def _resolve_data_dir(raw: str, *, base_dir: Path) -> Path:
    p = Path(raw.strip() or "data").expanduser()
    if not p.is_absolute():
        p = (base_dir / p).resolve()
    return p


def _install_error_handlers(app: FastAPI, templates: Jinja2Templates) -> None:
    def render_error(request: Request, status_code: int, message: str) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "error.html",
            {"status_code": status_code, "message": message},
            status_code=status_code,
        )

    @app.exception_handler(LoginRequiredError)
    async def login_required(request: Request, exc: LoginRequiredError) -> RedirectResponse:
        return RedirectResponse(exc.login_url, status_code=302)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> HTMLResponse:
        return render_error(request, exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception) -> HTMLResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return render_error(request, 500, GENERIC_ERROR)


def create_app(
    settings: Optional[NotarySettings] = None,
    *,
    mailer: Optional[MailSender] = None,
    base_dir: Optional[Path] = None,
) -> FastAPI:
    """
    Build the application: stores, identity, mail, routes and error pages.

    Args:
        settings: Settings to use; loaded from config file and environment if None.
        mailer: Confirmation mail sender; SMTP via apprise if None.
        base_dir: Directory relative data paths are resolved against (default: cwd).
    """
    base_dir = base_dir or Path.cwd()
    if settings is None:
        settings = load_settings(repo_root=base_dir)

    data_dir = _resolve_data_dir(settings.data_dir, base_dir=base_dir)
    store = RecordStore(root=data_dir / "records")
    blobs = BlobStore(data_dir / "blobs")
    identity = IdentityProvider(username=settings.admin_username, password=settings.admin_password)
    if mailer is None:
        mailer = AppriseMailSender(settings.mail)
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    session_secret = settings.session_secret
    if not session_secret:
        logger.warning("No session secret configured; admin sessions will not survive a restart")
        session_secret = secrets.token_urlsafe(32)

    app = FastAPI(title="filenotary")
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        same_site="lax",
        https_only=settings.base_url.startswith("https://"),
    )

    app.include_router(
        create_submission_router(
            store=store, blobs=blobs, settings=settings, mailer=mailer, templates=templates
        )
    )
    app.include_router(create_admin_router(store=store, blobs=blobs, identity=identity, templates=templates))
    app.include_router(create_auth_router(identity=identity, templates=templates))
    _install_error_handlers(app, templates)

    app.state.settings = settings
    app.state.record_store = store
    app.state.blob_store = blobs
    app.state.identity = identity
    app.state.mailer = mailer

    logger.info("File notary ready, data in %s", data_dir)
    return app
