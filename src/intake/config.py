"""
Agency Intake - Configuration and settings.

Everything is read from the environment (or a local .env file).
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class IntakeSettings(BaseSettings):
    """
    Application settings.

    Supabase credentials are required; the webhook target is optional and
    only used by the completion forwarder.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase
    supabase_url: str
    supabase_anon_key: str

    # Completion forwarder target (set with WEBHOOK_URL)
    webhook_url: str | None = None

    # Application
    intake_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Browser-session cookie holding the anonymous session id
    session_cookie_name: str = "dazlance_form_session_id"

    # CORS for the form frontend
    cors_origins: list[str] = [
        "http://localhost:5173",  # Vite dev server
        "http://127.0.0.1:5173",
    ]


@lru_cache
def get_settings() -> IntakeSettings:
    """Get cached settings instance."""
    return IntakeSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: IntakeSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
