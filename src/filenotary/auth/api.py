from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .identity import IdentityProvider, safe_next


def create_auth_router(*, identity: IdentityProvider, templates: Jinja2Templates) -> APIRouter:
    router = APIRouter(tags=["auth"])

    @router.get("/login", response_class=HTMLResponse)
    def login_form(request: Request, next_path: str = Query("", alias="next")) -> HTMLResponse:
        return templates.TemplateResponse(request, "login.html", {"next": safe_next(next_path)})

    @router.post("/login")
    async def login(request: Request) -> RedirectResponse:
        form = await request.form()
        username = str(form.get("username") or "")
        password = str(form.get("password") or "")
        target = safe_next(str(form.get("next") or ""))

        if not identity.authenticate(username, password):
            raise HTTPException(status_code=401, detail="Invalid username or password")

        identity.login(request, username)
        return RedirectResponse(target, status_code=303)

    @router.get("/logout")
    def logout(request: Request) -> RedirectResponse:
        identity.logout(request)
        return RedirectResponse("/", status_code=302)

    return router
