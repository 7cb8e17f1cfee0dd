from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_utc_z(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_utc_z(raw: str) -> datetime:
    dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class PayloadRef:
    handle: str
    sha1: str
    size: int
    filename: Optional[str] = None

    def to_persist_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "handle": self.handle,
            "sha1": self.sha1,
            "size": self.size,
        }
        if self.filename:
            data["filename"] = self.filename
        return data

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "PayloadRef":
        return cls(
            handle=str(data["handle"]),
            sha1=str(data["sha1"]),
            size=int(data.get("size", 0) or 0),
            filename=(str(data["filename"]) if data.get("filename") else None),
        )


@dataclass(frozen=True)
class UploadRecord:
    key: str
    name: str
    email: str
    comments: str
    timestamp: datetime
    report: PayloadRef
    archive: PayloadRef

    def sort_key(self) -> tuple[datetime, str]:
        """Export and listing order: timestamp, then email."""
        return (self.timestamp, self.email)

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "version": 1,
            "key": self.key,
            "name": self.name,
            "email": self.email,
            "comments": self.comments,
            "timestamp": format_utc_z(self.timestamp),
            "report": self.report.to_persist_dict(),
            "archive": self.archive.to_persist_dict(),
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "UploadRecord":
        return cls(
            key=str(data["key"]),
            name=str(data["name"]),
            email=str(data["email"]),
            comments=str(data.get("comments", "") or ""),
            timestamp=parse_utc_z(str(data["timestamp"])),
            report=PayloadRef.from_persist_dict(data["report"]),
            archive=PayloadRef.from_persist_dict(data["archive"]),
        )
