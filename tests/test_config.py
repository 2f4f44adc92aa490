"""Unit tests for app.core.config.Settings: env aliases and validators."""

import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from app.core.config import Settings


def _settings(**env: str) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = _settings()
        self.assertEqual(settings.APP_ENV, "dev")
        self.assertEqual(settings.TRIAL_DAYS, 15)
        self.assertEqual(settings.DEMO_TRIAL_DAYS, 30)
        self.assertIsNone(settings.CRON_SECRET)
        self.assertTrue(settings.DEBUG_ENDPOINTS_ENABLED)

    def test_node_env_maps_to_app_env(self) -> None:
        self.assertEqual(_settings(NODE_ENV="production").APP_ENV, "prod")
        self.assertEqual(_settings(NODE_ENV="development").APP_ENV, "dev")

    def test_public_app_url_alias_and_trailing_slash(self) -> None:
        settings = _settings(NEXT_PUBLIC_APP_URL="https://medsas.example.com/")
        self.assertEqual(settings.BASE_URL, "https://medsas.example.com")

    def test_blank_cron_secret_is_unset(self) -> None:
        self.assertIsNone(_settings(CRON_SECRET="   ").CRON_SECRET)

    def test_rejects_non_postgres_database(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="sqlite:///medsas.db")

    def test_rejects_bad_base_url_scheme(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(BASE_URL="ftp://medsas.example.com")

    def test_rejects_out_of_range_trial_days(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(TRIAL_DAYS="0")


if __name__ == "__main__":
    unittest.main()
