import json
import tempfile
import unittest
from pathlib import Path

from s3fm.settings import AppSettings, SettingsStorage


class SettingsStorageTests(unittest.TestCase):
    def test_load_returns_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            storage = SettingsStorage(Path(tmp) / "settings.json")

            self.assertEqual(AppSettings(), storage.load())

    def test_load_sanitizes_invalid_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            payload = {
                "fetch_metadata": "no",
                "discard_stale_responses": 1,
                "remember_last_bucket": "yes",
                "last_bucket": 123,
                "last_connection": None,
                "log_level": "chatty",
            }
            path.write_text(json.dumps(payload), encoding="utf-8")

            settings = SettingsStorage(path).load()

            self.assertEqual(AppSettings(), settings)

    def test_load_normalizes_log_level(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text(json.dumps({"log_level": " debug "}), encoding="utf-8")

            self.assertEqual("DEBUG", SettingsStorage(path).load().log_level)

    def test_load_ignores_corrupt_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text("{not json", encoding="utf-8")

            self.assertEqual(AppSettings(), SettingsStorage(path).load())

    def test_save_round_trips(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "settings.json"
            storage = SettingsStorage(path)
            settings = AppSettings(
                fetch_metadata=False,
                discard_stale_responses=True,
                hide_folder_markers=False,
                remember_last_bucket=True,
                last_connection="local",
                last_bucket="docs",
                log_level="INFO",
            )

            storage.save(settings)

            self.assertEqual(settings, storage.load())


if __name__ == "__main__":
    unittest.main()
