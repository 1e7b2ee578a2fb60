"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from fintrack.config import (
    AppSettings,
    LedgerSettings,
    get_settings,
    validate_all_settings,
)


class TestLedgerSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_DEBOUNCE_MS", raising=False)
        settings = LedgerSettings()
        assert settings.debounce_ms == 500
        assert settings.debounce_seconds == 0.5
        assert settings.flush_on_shutdown is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DEBOUNCE_MS", "250")
        monkeypatch.setenv("LEDGER_FLUSH_ON_SHUTDOWN", "false")
        settings = LedgerSettings()
        assert settings.debounce_seconds == 0.25
        assert settings.flush_on_shutdown is False

    def test_rejects_negative_window(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DEBOUNCE_MS", "-1")
        with pytest.raises(ValidationError):
            LedgerSettings()


class TestAppSettings:

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_unknown_backend_is_rejected(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()


class TestValidateAllSettings:

    @pytest.fixture(autouse=True)
    def fresh_settings(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_memory_backend_needs_no_google_config(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        results = validate_all_settings()
        assert results == {"ledger": True, "app": True}

    def test_sheets_backend_requires_google_config(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        results = validate_all_settings()
        assert results["google_sheets"] is False
