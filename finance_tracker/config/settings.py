"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
There are no external services, so the settings describe the mock store,
the local-storage file that mirrors the signed-in session, and a few
presentation defaults.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """In-memory store and simulated REST surface configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    seed_fixtures: bool = Field(
        default=True,
        description="Load the demo user and sample records at startup"
    )
    api_prefix: str = Field(
        default="/api",
        description="Path prefix the in-memory router answers for"
    )

    @field_validator('api_prefix')
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        """Always a single leading slash, never a trailing one."""
        v = v.strip().strip("/")
        if not v:
            raise ValueError("API prefix cannot be empty")
        return f"/{v}"


class SessionSettings(BaseSettings):
    """Where the signed-in user is mirrored between reloads."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    storage_key: str = Field(
        default="currentUser",
        min_length=1,
        description="Local storage key holding the serialized session"
    )
    storage_path: str = Field(
        default=".finance_tracker/local_storage.json",
        description="JSON file used as local storage"
    )

    @property
    def storage_file(self) -> Path:
        return Path(self.storage_path).expanduser()


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
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level"
    )

    # Presentation
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )
    trailing_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Months shown in the dashboard savings chart"
    )
    notification_duration_ms: int = Field(
        default=3000,
        ge=500,
        description="How long a notification stays visible"
    )

    # Budget form limits
    min_budget_year: int = Field(default=2000)
    max_budget_year: int = Field(default=2100)


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

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

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

    Returns a dict of {setting_name: is_valid}, with a
    {setting_name}_error entry for each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("store", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
