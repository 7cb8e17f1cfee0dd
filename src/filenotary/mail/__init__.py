"""
Outgoing mail.

Provides:
- MailSender protocol and the apprise-backed SMTP sender (sender.py)
"""

from .sender import AppriseMailSender, MailSender, send_best_effort

__all__ = [
    "AppriseMailSender",
    "MailSender",
    "send_best_effort",
]
