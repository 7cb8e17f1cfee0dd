"""
Administrator identity.

The identity of the current request lives in a signed session cookie
(Starlette's SessionMiddleware). Only the configured administrator can log in.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request


logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"
LOGIN_PATH = "/login"
DEFAULT_NEXT = "/admin/"


class LoginRequiredError(Exception):
    """Raised by route dependencies when an anonymous user hits a gated page."""

    def __init__(self, login_url: str):
        super().__init__(login_url)
        self.login_url = login_url


def safe_next(value: Optional[str]) -> str:
    """
    Restrict a post-login return path to a local absolute path.

    Anything else (full URLs, protocol-relative paths) falls back to the
    admin listing.
    """
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return DEFAULT_NEXT
    return value


def request_path(request: Request) -> str:
    """Path plus query string of a request."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class IdentityProvider:
    def __init__(self, *, username: str, password: str):
        self._username = username
        self._password = password
        if not password:
            logger.warning("No admin password configured; admin login is disabled")

    def current_user(self, request: Request) -> Optional[str]:
        user = request.session.get(SESSION_USER_KEY)
        return str(user) if user else None

    def login_url(self, return_path: str) -> str:
        return f"{LOGIN_PATH}?{urlencode({'next': safe_next(return_path)})}"

    def authenticate(self, username: str, password: str) -> bool:
        if not self._password:
            return False
        user_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        password_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        return user_ok and password_ok

    def login(self, request: Request, username: str) -> None:
        request.session[SESSION_USER_KEY] = username
        logger.info("Admin %s logged in", username)

    def logout(self, request: Request) -> None:
        request.session.pop(SESSION_USER_KEY, None)

    def require_user(self, request: Request) -> str:
        """FastAPI dependency: the logged-in user, or a redirect to the login page."""
        user = self.current_user(request)
        if user is None:
            raise LoginRequiredError(self.login_url(request_path(request)))
        return user
