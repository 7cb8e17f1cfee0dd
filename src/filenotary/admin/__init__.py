"""
Administrator pages: upload listing and archive export.
"""

from .api import EXPORT_FILENAME, create_admin_router

__all__ = [
    "EXPORT_FILENAME",
    "create_admin_router",
]
