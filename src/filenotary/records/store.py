from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from ..fs.naming import is_valid_record_key
from .models import UploadRecord


logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when no record is stored under a key."""


class RecordStoreError(RuntimeError):
    """Raised when a stored record cannot be read or written."""


class RecordStore:
    """
    Upload records as one JSON document per key: <root>/<key>.json.

    Putting an existing key overwrites it. The submission flow uses
    put_if_absent, so a registered record keeps its first timestamp.
    """

    def __init__(self, *, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def put(self, record: UploadRecord) -> None:
        if not is_valid_record_key(record.key):
            raise RecordStoreError(f"invalid record key: {record.key!r}")

        payload = record.to_persist_dict()
        path = self._path(record.key)

        with self._lock:
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            try:
                tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
                tmp_path.replace(path)
            except OSError as exc:
                raise RecordStoreError(f"cannot store record {record.key}: {exc}") from exc

        logger.info("Stored upload record %s", record.key)

    def put_if_absent(self, record: UploadRecord) -> UploadRecord:
        """
        Store a record unless its key is already taken.

        Returns:
            The stored record: the existing one if the key was taken,
            otherwise the given record.
        """
        with self._lock:
            try:
                return self.get(record.key)
            except RecordNotFoundError:
                self.put(record)
                return record

    def get(self, key: str) -> UploadRecord:
        if not is_valid_record_key(key):
            raise RecordNotFoundError(key)

        path = self._path(key)
        with self._lock:
            if not path.exists():
                raise RecordNotFoundError(key)
            return self._load(path)

    def query(self) -> list[UploadRecord]:
        """All records ordered by timestamp, then email."""
        with self._lock:
            records = [self._load(path) for path in sorted(self._root.glob("*.json"))]
        records.sort(key=UploadRecord.sort_key)
        return records

    def _load(self, path: Path) -> UploadRecord:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return UploadRecord.from_persist_dict(raw)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise RecordStoreError(f"cannot read record {path.name}: {exc}") from exc
