"""
Configuration Management for MoneyMigo

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and handed to
services explicitly. No service reaches for a global API-key holder;
the Gemini key travels inside GeminiSettings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


GEMINI_KEY_PREFIX = "AIzaSy"


def looks_like_gemini_key(key: Optional[str]) -> bool:
    """Cheap format check for Google AI Studio keys."""
    return bool(key) and key.startswith(GEMINI_KEY_PREFIX) and len(key) > 20


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per collection
    transactions_sheet_name: str = Field(default="Transactions")
    budgets_sheet_name: str = Field(default="Budgets")
    goals_sheet_name: str = Field(default="Goals")
    profiles_sheet_name: str = Field(default="Profiles")
    insights_sheet_name: str = Field(default="Insights")
    story_events_sheet_name: str = Field(default="StoryEvents")
    predictions_sheet_name: str = Field(default="Predictions")

    # Backoff for 429 / 5xx / network failures
    max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: float = Field(default=2.0, ge=0.0)
    retry_max_wait: float = Field(default=10.0, ge=0.0)

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    # Optional so the app can run without AI; the client refuses to call out without it
    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash-latest",
        description="Gemini model to use"
    )

    # Generation parameters
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature"
    )
    top_k: int = Field(default=40, ge=1)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    max_output_tokens: int = Field(
        default=1024,
        ge=64,
        le=8192,
        description="Maximum tokens in response"
    )

    # Retry policy for overload / quota responses
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts per request, including the first"
    )
    retry_initial_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds before the first retry; doubles each attempt"
    )
    retry_max_delay: float = Field(
        default=8.0,
        ge=0.0,
        description="Upper bound for a single backoff sleep"
    )
    retry_jitter: float = Field(
        default=1.0,
        ge=0.0,
        description="Maximum random seconds added to each backoff"
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for structured logs"
    )

    # Which storage backend create_app_components wires up
    storage_backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Storage backend: in-memory demo or Google Sheets"
    )

    # Presentation of money in prompts and insight text
    currency_symbol: str = Field(
        default="₹",
        description="Currency symbol used in generated text"
    )

    # Analytics thresholds
    recent_window_days: int = Field(
        default=30,
        ge=1,
        description="Window for 'recent' transactions in prompts"
    )
    story_event_threshold: float = Field(
        default=5.0,
        ge=0.0,
        le=10.0,
        description="Absolute impact score above which a story event is recorded"
    )
    profile_sample_size: int = Field(
        default=50,
        ge=1,
        description="How many recent transactions feed the avatar score"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are built lazily so a missing Sheets config
    # doesn't stop the in-memory backend from starting.

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        app = settings.app
        results["app"] = True
    except Exception as e:
        app = None
        results["app"] = False
        results["app_error"] = str(e)

    try:
        gemini = settings.gemini
        results["gemini"] = looks_like_gemini_key(gemini.api_key)
        if not results["gemini"]:
            results["gemini_error"] = (
                "Gemini API key missing or malformed; AI insights will be unavailable"
            )
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    # Sheets only matters when it is the selected backend
    if app is None or app.storage_backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results
