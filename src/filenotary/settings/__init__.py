"""
Application configuration.

Provides:
- Settings dataclasses (models.py)
- JSON config file with environment overrides (store.py)
"""

from .models import MailSettings, NotarySettings
from .store import SettingsStore, apply_env_overrides, load_settings

__all__ = [
    "MailSettings",
    "NotarySettings",
    "SettingsStore",
    "apply_env_overrides",
    "load_settings",
]
