from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_DATA_DIR = "data"
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_KEY_LENGTH = 10
DEFAULT_EMAIL_PATTERN = r"^[a-zA-Z0-9]+@([a-zA-Z0-9]+\.)*ku\.dk$"
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_SMTP_PORT = 587


@dataclass
class MailSettings:
    """
    SMTP settings for confirmation mails.

    Attributes:
        smtp_server: SMTP host; mail is disabled while empty.
        smtp_port: SMTP port.
        smtp_user: Login user.
        smtp_password: Login password.
        sender: From address.
    """
    smtp_server: str = ""
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: str = ""
    smtp_password: str = ""
    sender: str = ""

    def is_complete(self) -> bool:
        return all(v.strip() for v in (self.smtp_server, self.smtp_user, self.smtp_password, self.sender))

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "smtp_server": self.smtp_server,
            "smtp_port": self.smtp_port,
            "smtp_user": self.smtp_user,
            "smtp_password": self.smtp_password,
            "sender": self.sender,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "MailSettings":
        try:
            smtp_port = int(data.get("smtp_port", DEFAULT_SMTP_PORT) or DEFAULT_SMTP_PORT)
        except (TypeError, ValueError):
            smtp_port = DEFAULT_SMTP_PORT
        return cls(
            smtp_server=str(data.get("smtp_server", "") or ""),
            smtp_port=smtp_port,
            smtp_user=str(data.get("smtp_user", "") or ""),
            smtp_password=str(data.get("smtp_password", "") or ""),
            sender=str(data.get("sender", "") or ""),
        )


@dataclass
class NotarySettings:
    data_dir: str = DEFAULT_DATA_DIR
    base_url: str = DEFAULT_BASE_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    key_length: int = DEFAULT_KEY_LENGTH
    key_includes_timestamp: bool = False
    email_pattern: str = DEFAULT_EMAIL_PATTERN
    admin_username: str = DEFAULT_ADMIN_USERNAME
    admin_password: str = ""
    session_secret: str = ""
    mail: MailSettings = field(default_factory=MailSettings)

    def view_url(self, key: str) -> str:
        """Permanent public link of a record."""
        return f"{self.base_url.rstrip('/')}/upload/{key}"

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "version": 1,
            "data_dir": self.data_dir,
            "base_url": self.base_url,
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level,
            "key_length": self.key_length,
            "key_includes_timestamp": self.key_includes_timestamp,
            "email_pattern": self.email_pattern,
            "admin_username": self.admin_username,
            "admin_password": self.admin_password,
            "session_secret": self.session_secret,
            "mail": self.mail.to_persist_dict(),
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "NotarySettings":
        defaults = cls()

        def _int(key: str, default: int) -> int:
            try:
                return int(data.get(key, default) or default)
            except (TypeError, ValueError):
                return default

        raw_mail = data.get("mail")
        mail: Optional[MailSettings] = None
        if isinstance(raw_mail, dict):
            mail = MailSettings.from_persist_dict(raw_mail)

        return cls(
            data_dir=str(data.get("data_dir", DEFAULT_DATA_DIR) or DEFAULT_DATA_DIR),
            base_url=str(data.get("base_url", DEFAULT_BASE_URL) or DEFAULT_BASE_URL),
            host=str(data.get("host", DEFAULT_HOST) or DEFAULT_HOST),
            port=_int("port", DEFAULT_PORT),
            log_level=str(data.get("log_level", defaults.log_level) or defaults.log_level).upper(),
            key_length=_int("key_length", DEFAULT_KEY_LENGTH),
            key_includes_timestamp=bool(data.get("key_includes_timestamp", False)),
            email_pattern=str(data.get("email_pattern", DEFAULT_EMAIL_PATTERN) or DEFAULT_EMAIL_PATTERN),
            admin_username=str(data.get("admin_username", DEFAULT_ADMIN_USERNAME) or DEFAULT_ADMIN_USERNAME),
            admin_password=str(data.get("admin_password", "") or ""),
            session_secret=str(data.get("session_secret", "") or ""),
            mail=mail or MailSettings(),
        )
