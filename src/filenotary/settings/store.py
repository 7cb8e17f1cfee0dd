from __future__ import annotations

import json
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional

from .models import NotarySettings


CONFIG_ENV = "FILENOTARY_CONFIG"

# Environment variable -> settings attribute
_ENV_OVERRIDES = {
    "FILENOTARY_DATA_DIR": "data_dir",
    "FILENOTARY_BASE_URL": "base_url",
    "FILENOTARY_ADMIN_USER": "admin_username",
    "FILENOTARY_ADMIN_PASSWORD": "admin_password",
    "FILENOTARY_SESSION_SECRET": "session_secret",
}

# Same names the SMTP notification adapters read
_MAIL_ENV_OVERRIDES = {
    "SMTP_SERVER": "smtp_server",
    "SMTP_USER": "smtp_user",
    "SMTP_PASSWORD": "smtp_password",
    "SMTP_FROM": "sender",
}


class SettingsStore:
    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> NotarySettings:
        with self._lock:
            if not self._path.exists():
                return NotarySettings()

            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                return NotarySettings()

            if not isinstance(raw, dict):
                return NotarySettings()

            return NotarySettings.from_persist_dict(raw)

    def save(self, settings: NotarySettings) -> None:
        payload = settings.to_persist_dict()

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(self._path)


def apply_env_overrides(settings: NotarySettings, environ: Mapping[str, str]) -> NotarySettings:
    """Return a copy of settings with deployment values taken from the environment."""
    changes = {attr: environ[name] for name, attr in _ENV_OVERRIDES.items() if environ.get(name)}
    mail_changes: dict[str, object] = {
        attr: environ[name] for name, attr in _MAIL_ENV_OVERRIDES.items() if environ.get(name)
    }
    if environ.get("SMTP_PORT"):
        try:
            mail_changes["smtp_port"] = int(environ["SMTP_PORT"])
        except ValueError:
            pass

    if mail_changes:
        changes["mail"] = replace(settings.mail, **mail_changes)
    return replace(settings, **changes)


def load_settings(
    path: Optional[Path] = None,
    *,
    repo_root: Path,
    environ: Optional[Mapping[str, str]] = None,
) -> NotarySettings:
    """
    Load settings from the config file and the environment.

    The config file is FILENOTARY_CONFIG if set, else <repo_root>/data/config.json.
    """
    env = os.environ if environ is None else environ
    if path is None:
        raw = env.get(CONFIG_ENV)
        path = Path(raw).expanduser() if raw else repo_root / "data" / "config.json"

    settings = SettingsStore(path=path).load()
    return apply_env_overrides(settings, env)
