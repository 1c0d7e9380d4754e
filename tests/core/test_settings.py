"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from cronguard.core.settings import CronGuardSettings, get_settings


class TestCronGuardSettings:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = CronGuardSettings()
        assert settings.log_level == "INFO"
        assert settings.log_json is None
        assert settings.service == "cronguard"
        assert settings.timezone == "UTC"
        assert settings.history_limit == 10

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CRONGUARD_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("CRONGUARD_HISTORY_LIMIT", "25")
        monkeypatch.setenv("CRONGUARD_LOG_JSON", "true")

        settings = CronGuardSettings()

        assert settings.timezone == "Europe/Berlin"
        assert settings.history_limit == 25
        assert settings.log_json is True

    def test_dotenv_file(self, monkeypatch, tmp_path):
        (tmp_path / ".env").write_text("CRONGUARD_SERVICE=billing-jobs\n")
        monkeypatch.chdir(tmp_path)

        assert CronGuardSettings().service == "billing-jobs"

    def test_invalid_history_limit(self, monkeypatch):
        monkeypatch.setenv("CRONGUARD_HISTORY_LIMIT", "0")
        with pytest.raises(ValidationError):
            CronGuardSettings()

    def test_unrelated_env_ignored(self, monkeypatch):
        monkeypatch.setenv("CRONGUARD_NOT_A_SETTING", "x")
        CronGuardSettings()


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
