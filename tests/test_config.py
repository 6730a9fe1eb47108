"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from finance_tracker.config import (
    AppSettings,
    SessionSettings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)


class TestStoreSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FINANCE_STORE_API_PREFIX", raising=False)
        monkeypatch.delenv("FINANCE_STORE_SEED_FIXTURES", raising=False)
        settings = StoreSettings(_env_file=None)
        assert settings.seed_fixtures is True
        assert settings.api_prefix == "/api"

    def test_prefix_is_normalized(self, monkeypatch):
        monkeypatch.setenv("FINANCE_STORE_API_PREFIX", "v2/")
        assert StoreSettings(_env_file=None).api_prefix == "/v2"

    def test_empty_prefix_rejected(self, monkeypatch):
        monkeypatch.setenv("FINANCE_STORE_API_PREFIX", "/")
        with pytest.raises(ValidationError):
            StoreSettings(_env_file=None)


class TestSessionSettings:
    def test_storage_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINANCE_SESSION_STORAGE_PATH", str(tmp_path / "ls.json"))
        settings = SessionSettings(_env_file=None)
        assert settings.storage_file == tmp_path / "ls.json"
        assert settings.storage_key == "currentUser"


class TestAppSettings:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TRAILING_MONTHS", "12")
        monkeypatch.setenv("CURRENCY", "EUR")
        settings = AppSettings(_env_file=None)
        assert settings.trailing_months == 12
        assert settings.currency == "EUR"

    def test_bounds(self, monkeypatch):
        monkeypatch.setenv("TRAILING_MONTHS", "0")
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)

    def test_log_level_pattern(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)


class TestValidateAllSettings:
    def test_reports_failures(self, monkeypatch):
        get_settings.cache_clear()
        monkeypatch.setenv("NOTIFICATION_DURATION_MS", "10")
        results = validate_all_settings()
        assert results["store"] is True
        assert results["session"] is True
        assert results["app"] is False
        assert "app_error" in results
        get_settings.cache_clear()
