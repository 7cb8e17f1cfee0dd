import json
import tempfile
import unittest
from pathlib import Path

from filenotary.settings.models import DEFAULT_EMAIL_PATTERN, MailSettings, NotarySettings
from filenotary.settings.store import SettingsStore, apply_env_overrides, load_settings


class TestNotarySettings(unittest.TestCase):
    def test_defaults(self):
        settings = NotarySettings()
        self.assertEqual(settings.key_length, 10)
        self.assertFalse(settings.key_includes_timestamp)
        self.assertEqual(settings.email_pattern, DEFAULT_EMAIL_PATTERN)
        self.assertFalse(settings.mail.is_complete())

    def test_from_persist_dict_tolerates_bad_values(self):
        settings = NotarySettings.from_persist_dict({"port": "eighty", "key_length": None, "mail": "nope"})
        self.assertEqual(settings.port, 8000)
        self.assertEqual(settings.key_length, 10)
        self.assertEqual(settings.mail, MailSettings())

    def test_view_url(self):
        settings = NotarySettings(base_url="https://notary.example.org/")
        self.assertEqual(settings.view_url("0123456789"), "https://notary.example.org/upload/0123456789")


class TestSettingsStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "data" / "config.json"

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file_gives_defaults(self):
        self.assertEqual(SettingsStore(path=self.path).load(), NotarySettings())

    def test_corrupt_file_gives_defaults(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("[1, 2", encoding="utf-8")
        self.assertEqual(SettingsStore(path=self.path).load(), NotarySettings())

    def test_save_and_load(self):
        store = SettingsStore(path=self.path)
        settings = NotarySettings(
            key_length=16,
            admin_password="pw",
            mail=MailSettings(smtp_server="smtp.example.org", smtp_user="u", smtp_password="p", sender="n@example.org"),
        )
        store.save(settings)

        self.assertEqual(store.load(), settings)
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(raw["mail"]["smtp_server"], "smtp.example.org")


class TestEnvironment(unittest.TestCase):
    def test_env_overrides(self):
        env = {
            "FILENOTARY_ADMIN_PASSWORD": "s3cret",
            "FILENOTARY_BASE_URL": "https://notary.example.org",
            "SMTP_SERVER": "smtp.example.org",
            "SMTP_PORT": "465",
            "SMTP_FROM": "notary@example.org",
        }
        settings = apply_env_overrides(NotarySettings(), env)
        self.assertEqual(settings.admin_password, "s3cret")
        self.assertEqual(settings.base_url, "https://notary.example.org")
        self.assertEqual(settings.mail.smtp_server, "smtp.example.org")
        self.assertEqual(settings.mail.smtp_port, 465)
        self.assertEqual(settings.mail.sender, "notary@example.org")

    def test_empty_env_values_ignored(self):
        base = NotarySettings(admin_password="keep")
        self.assertEqual(apply_env_overrides(base, {"FILENOTARY_ADMIN_PASSWORD": ""}), base)

    def test_load_settings_uses_config_env(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "custom.json"
            SettingsStore(path=path).save(NotarySettings(key_length=20))
            settings = load_settings(
                repo_root=Path(tmpdir),
                environ={"FILENOTARY_CONFIG": str(path), "FILENOTARY_SESSION_SECRET": "abc"},
            )
            self.assertEqual(settings.key_length, 20)
            self.assertEqual(settings.session_secret, "abc")


if __name__ == "__main__":
    unittest.main()
