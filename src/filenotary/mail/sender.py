"""
Confirmation mail delivery.

Mail is best effort: a submission is registered whether or not the mail goes
out, and delivery problems are only logged.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import quote, urlencode

import apprise

from ..settings.models import MailSettings


# We log our own outcome per message
logging.getLogger("apprise").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


class MailSender(Protocol):
    def send(self, to: str, subject: str, body: str) -> bool:
        """Send an HTML mail. Returns True if it was handed to the transport."""
        ...


class AppriseMailSender:
    """Sends mail over SMTP by building a mailtos:// URL for apprise."""

    def __init__(self, settings: MailSettings):
        self._settings = settings

    def _mailto_url(self, to: str) -> str:
        s = self._settings
        query = urlencode({"from": s.sender, "to": to})
        return (
            f"mailtos://{quote(s.smtp_user, safe='')}:{quote(s.smtp_password, safe='')}"
            f"@{s.smtp_server}:{s.smtp_port}/?{query}"
        )

    def send(self, to: str, subject: str, body: str) -> bool:
        if not self._settings.is_complete():
            logger.warning("Mail: smtp configuration incomplete, not sending to %s", to)
            return False

        apobj = apprise.Apprise()
        if not apobj.add(self._mailto_url(to)):
            logger.warning("Mail: invalid mailto URL for recipient %s", to)
            return False

        ok = bool(apobj.notify(title=subject, body=body, body_format=apprise.NotifyFormat.HTML))
        if ok:
            logger.info("Mail: confirmation sent to %s", to)
        else:
            logger.error("Mail: delivery to %s failed", to)
        return ok


def send_best_effort(sender: MailSender, to: str, subject: str, body: str) -> bool:
    """Send a mail, logging and swallowing any error."""
    try:
        return sender.send(to, subject, body)
    except Exception:
        logger.exception("Mail: sending to %s raised", to)
        return False
