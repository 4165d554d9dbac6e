import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from storybook_audit.config import DEFAULT_PORT, AuditSettings
from storybook_audit.errors import CatalogNotFoundError
from storybook_audit.models import ScreenshotMode


class TestAuditSettings(unittest.TestCase):
    def setUp(self):
        # Keep a developer's .env out of the tests
        patcher = patch("storybook_audit.config.load_dotenv")
        self.load_dotenv = patcher.start()
        self.addCleanup(patcher.stop)

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = AuditSettings.from_env(storybook_dir="storybook-static")

        self.assertEqual(settings.port, DEFAULT_PORT)
        self.assertEqual(settings.screenshot_mode, ScreenshotMode.NONE)
        self.assertEqual(settings.settle_ms, 1000)
        self.assertEqual(settings.advance_retries, 3)
        self.assertEqual(settings.report_timeout, 120.0)
        self.assertEqual(settings.resolved_axe_url, "http://localhost:9876/axe.min.js")
        self.load_dotenv.assert_called_once()

    def test_environment_values(self):
        env = {
            "STORYBOOK_AUDIT_STORYBOOK": "/srv/storybook",
            "STORYBOOK_AUDIT_PORT": "6006",
            "STORYBOOK_AUDIT_SETTLE_MS": "250",
            "STORYBOOK_AUDIT_REPORT_TIMEOUT": "30",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = AuditSettings.from_env()

        self.assertEqual(settings.storybook_dir, Path("/srv/storybook"))
        self.assertEqual(settings.port, 6006)
        self.assertEqual(settings.settle_ms, 250)
        self.assertEqual(settings.report_timeout, 30.0)
        self.assertEqual(settings.base_url, "http://localhost:6006")

    def test_overrides_beat_environment_and_none_falls_through(self):
        with patch.dict(os.environ, {"STORYBOOK_AUDIT_PORT": "6006"}, clear=True):
            self.assertEqual(AuditSettings.from_env(storybook_dir=".", port=7000).port, 7000)
            self.assertEqual(AuditSettings.from_env(storybook_dir=".", port=None).port, 6006)

    def test_zero_timeout_waits_forever(self):
        self.assertIsNone(AuditSettings(storybook_dir=".", report_timeout=0).report_timeout)
        self.assertIsNone(AuditSettings(storybook_dir=".", report_timeout=None).report_timeout)

    def test_rejects_bad_port(self):
        with self.assertRaises(ValidationError):
            AuditSettings(storybook_dir=".", port=70000)

    def test_requires_catalog_dir(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError):
                AuditSettings.from_env()

    def test_ensure_catalog(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "index.html").write_text("<html></html>")
            self.assertEqual(AuditSettings(storybook_dir=tmp).ensure_catalog(), Path(tmp).resolve())

            with self.assertRaises(CatalogNotFoundError):
                AuditSettings(storybook_dir=Path(tmp) / "missing").ensure_catalog()


if __name__ == "__main__":
    unittest.main()
