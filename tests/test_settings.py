import os
import unittest
from unittest.mock import patch

from lottery.settings import Settings


class SettingsTests(unittest.TestCase):
    def test_exclude_any_win_defaults_to_true(self):
        with patch.dict(os.environ, {}, clear=True), patch(
            "lottery.settings.load_dotenv"
        ):
            settings = Settings.from_env()
        self.assertTrue(settings.exclude_any_win)
        self.assertTrue(settings.database_url.startswith("sqlite:///"))
        self.assertEqual(settings.log_level, "INFO")

    def test_flags_and_urls_read_from_environment(self):
        env = {
            "DB_URL": "postgresql+psycopg://u:p@db/lottery",
            "LOTTERY_EXCLUDE_ANY_WIN": "no",
            "LOTTERY_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True), patch(
            "lottery.settings.load_dotenv"
        ):
            settings = Settings.from_env()
        self.assertEqual(settings.database_url, env["DB_URL"])
        self.assertFalse(settings.exclude_any_win)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_flag_raises(self):
        with patch.dict(os.environ, {"LOTTERY_EXCLUDE_ANY_WIN": "maybe"}, clear=True), patch(
            "lottery.settings.load_dotenv"
        ):
            with self.assertRaises(ValueError):
                Settings.from_env()


if __name__ == "__main__":
    unittest.main()
