"""
Administrator login.

Provides:
- Session-backed identity provider (identity.py)
- Login/logout routes (api.py)
"""

from .identity import IdentityProvider, LoginRequiredError, safe_next

__all__ = [
    "IdentityProvider",
    "LoginRequiredError",
    "safe_next",
]
