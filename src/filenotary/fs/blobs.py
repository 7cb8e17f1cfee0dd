"""
Blob storage for uploaded payloads.

Directory structure:
    <root>/<handle[:2]>/<handle>        payload bytes
    <root>/<handle[:2]>/<handle>.json   metadata (original filename, digest, size)

Handles are opaque random tokens; records refer to payloads only through them.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional

from .hashing import BUFFER_SIZE, StreamHasher


HANDLE_PATTERN = re.compile(r"[0-9a-f]{32}")


class BlobNotFoundError(LookupError):
    """Raised when a blob handle does not resolve to a stored payload."""


@dataclass(frozen=True)
class BlobInfo:
    """Metadata recorded alongside a stored payload."""
    handle: str
    size: int
    sha1: str
    filename: Optional[str] = None
    content_type: Optional[str] = None

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "handle": self.handle,
            "size": self.size,
            "sha1": self.sha1,
            "filename": self.filename,
            "content_type": self.content_type,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "BlobInfo":
        return cls(
            handle=str(data["handle"]),
            size=int(data["size"]),
            sha1=str(data["sha1"]),
            filename=(str(data["filename"]) if data.get("filename") else None),
            content_type=(str(data["content_type"]) if data.get("content_type") else None),
        )


class BlobStore:
    """
    Stores payloads on the local filesystem under opaque handles.

    Writes go to a temporary file inside the store and are moved into place
    only once fully copied, so a handle never resolves to a partial payload.
    """

    def __init__(self, root: Path):
        """
        Initialize the blob store.

        Args:
            root: Directory holding all blobs. Created if missing.
        """
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        """Get the blob root directory."""
        return self._root

    def _paths(self, handle: str) -> tuple[Path, Path]:
        if not HANDLE_PATTERN.fullmatch(handle or ""):
            raise BlobNotFoundError(handle)
        shard = self._root / handle[:2]
        return shard / handle, shard / f"{handle}.json"

    def put_stream(
        self,
        stream: BinaryIO,
        *,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        on_chunk: Optional[Callable[[bytes], None]] = None,
    ) -> BlobInfo:
        """
        Copy a stream into the store.

        Args:
            stream: Binary stream positioned at the start of the payload.
            filename: Original client filename, kept as metadata.
            content_type: Client-declared MIME type, kept as metadata.
            on_chunk: Called with every chunk copied, in order.

        Returns:
            BlobInfo of the stored payload.

        Raises:
            OSError: If the payload cannot be written.
        """
        handle = uuid.uuid4().hex
        data_path, meta_path = self._paths(handle)
        data_path.parent.mkdir(parents=True, exist_ok=True)

        hasher = StreamHasher()
        fd, tmp_name = tempfile.mkstemp(prefix=".blob_", suffix=".tmp", dir=str(self._root))
        try:
            with os.fdopen(fd, "wb") as tmp:
                while True:
                    chunk = stream.read(BUFFER_SIZE)
                    if not chunk:
                        break
                    tmp.write(chunk)
                    hasher.update(chunk)
                    if on_chunk is not None:
                        on_chunk(chunk)

            info = BlobInfo(
                handle=handle,
                size=hasher.size,
                sha1=hasher.hexdigest(),
                filename=filename or None,
                content_type=content_type or None,
            )
            meta_path.write_text(json.dumps(info.to_persist_dict()) + "\n", encoding="utf-8")
            os.replace(tmp_name, data_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            meta_path.unlink(missing_ok=True)
            raise

        return info

    def open(self, handle: str) -> BinaryIO:
        """
        Open a stored payload for reading.

        Raises:
            BlobNotFoundError: If the handle is unknown.
        """
        data_path, _ = self._paths(handle)
        try:
            return open(data_path, "rb")
        except FileNotFoundError as exc:
            raise BlobNotFoundError(handle) from exc

    def stat(self, handle: str) -> BlobInfo:
        """
        Get the metadata of a stored payload.

        Raises:
            BlobNotFoundError: If the handle is unknown.
        """
        data_path, meta_path = self._paths(handle)
        if not data_path.is_file():
            raise BlobNotFoundError(handle)
        try:
            raw = json.loads(meta_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise BlobNotFoundError(handle) from exc
        return BlobInfo.from_persist_dict(raw)

    def delete(self, handle: str) -> None:
        """Remove a payload and its metadata. Unknown handles are ignored."""
        data_path, meta_path = self._paths(handle)
        data_path.unlink(missing_ok=True)
        meta_path.unlink(missing_ok=True)
