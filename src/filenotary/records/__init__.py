"""
Upload records and their persistent store.

Provides:
- Record and payload reference types (models.py)
- JSON-per-key record store (store.py)
"""

from .models import PayloadRef, UploadRecord, utc_now
from .store import RecordNotFoundError, RecordStore, RecordStoreError

__all__ = [
    "PayloadRef",
    "UploadRecord",
    "utc_now",
    "RecordNotFoundError",
    "RecordStore",
    "RecordStoreError",
]
