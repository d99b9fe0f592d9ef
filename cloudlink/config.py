"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings sourced from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────
    cloudlink_env: str = "development"
    cloudlink_log_level: str = "INFO"
    cloudlink_encryption_key: str = ""

    # ── Account store ────────────────────────────────────────────────
    account_store_url: str = "sqlite:///data/accounts.db"

    # ── Network probe ────────────────────────────────────────────────
    wifi_probe_timeout: float = 5.0

    # ── Derived ──────────────────────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.cloudlink_env == "production"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
