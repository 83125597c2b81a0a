"""Environment-driven configuration for the inventory service.

Every setting can be supplied through the environment or a ``.env`` file. The
values are read once and cached by :func:`get_settings`, so importing
``settings`` anywhere hands back the same object.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Resale Inventory"
    APP_ENV: str = "dev"

    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    TZ: str = "America/Chicago"

    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))

    # Resolved against DATA_DIR in get_settings() when left unset.
    DB_URL: str | None = Field(default=None, validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))
    UPLOADS_DIR: Path | None = None
    PLATFORMS_FILE: Path | None = None

    PUBLIC_BASE_URL: str = Field(default="", validation_alias=AliasChoices("PUBLIC_BASE_URL", "BACKEND_URL"))
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    ALLOWED_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    @property
    def allowed_origins(self) -> list[str]:
        return [item.strip() for item in self.ALLOWED_ORIGINS.split(",") if item.strip()]

    @property
    def public_base_url(self) -> str:
        return self.PUBLIC_BASE_URL.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    if settings.DB_URL is None:
        settings.DB_URL = f"sqlite:///{settings.DATA_DIR / 'data.db'}"
    if settings.UPLOADS_DIR is None:
        settings.UPLOADS_DIR = settings.DATA_DIR / "uploads"
    if settings.PLATFORMS_FILE is None:
        settings.PLATFORMS_FILE = settings.DATA_DIR / "platforms.json"
    settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
