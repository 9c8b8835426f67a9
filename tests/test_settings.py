"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from moneymigo.config import (
    AppSettings,
    GeminiSettings,
    GoogleSheetsSettings,
    get_settings,
    looks_like_gemini_key,
    validate_all_settings,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GEMINI_API_KEY",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "STORAGE_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestKeyFormat:

    def test_valid_key(self):
        assert looks_like_gemini_key("AIzaSy" + "a" * 33)

    @pytest.mark.parametrize("key", [None, "", "sk-123456789012345678901234", "AIzaSy123"])
    def test_rejected_keys(self, key):
        assert not looks_like_gemini_key(key)


class TestDefaults:

    def test_app_defaults(self, clean_env):
        app = AppSettings()
        assert app.storage_backend == "memory"
        assert app.currency_symbol == "₹"
        assert app.story_event_threshold == 5.0

    def test_gemini_defaults(self, clean_env):
        gemini = GeminiSettings()
        assert gemini.api_key is None
        assert not gemini.has_api_key
        assert gemini.max_attempts == 3

    def test_gemini_reads_prefixed_env(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "AIzaSy-from-env-000000000")
        clean_env.setenv("GEMINI_MAX_ATTEMPTS", "5")
        gemini = GeminiSettings()
        assert gemini.api_key == "AIzaSy-from-env-000000000"
        assert gemini.max_attempts == 5

    def test_attempts_are_bounded(self, clean_env):
        with pytest.raises(ValidationError):
            GeminiSettings(max_attempts=0)

    def test_sheets_require_credentials_and_id(self, clean_env):
        with pytest.raises(ValidationError):
            GoogleSheetsSettings()

    def test_missing_credentials_file_only_warns(self, clean_env, tmp_path):
        with pytest.warns(UserWarning):
            sheets = GoogleSheetsSettings(
                credentials_path=str(tmp_path / "missing.json"), spreadsheet_id="abc"
            )
        assert sheets.transactions_sheet_name == "Transactions"


class TestValidateAllSettings:

    def test_memory_backend_without_key(self, clean_env):
        results = validate_all_settings()
        assert results["app"] is True
        assert results["gemini"] is False
        assert "gemini_error" in results
        assert "google_sheets" not in results

    def test_sheets_backend_is_checked_when_selected(self, clean_env):
        clean_env.setenv("STORAGE_BACKEND", "google_sheets")
        clean_env.setenv("GEMINI_API_KEY", "AIzaSy" + "b" * 33)
        results = validate_all_settings()
        assert results["gemini"] is True
        assert results["google_sheets"] is False
