"""Environment-driven configuration.

The ``AppSettings`` class centralises every environment variable the server
relies on. Three values are mandatory (backend endpoint, backend API key and
the token signing secret); everything else has a development friendly
default. Settings are read once at startup and treated as immutable after
that: request handlers receive them through the request context instead of
reaching for a global.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_FIELDS = ("SUPABASE_ENDPOINT", "SUPABASE_KEY", "TIMELY_TOKEN_SECRET")


class AppSettings(BaseSettings):
    """Process-wide configuration for the Timely server."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    APP_NAME: str = "Timely"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    TZ: str = "UTC"
    LOG_LEVEL: str = "INFO"

    # ---- REST backend (PostgREST / Supabase)
    SUPABASE_ENDPOINT: str
    SUPABASE_KEY: str
    BACKEND_TIMEOUT: float = 10.0

    # ---- Browser authentication
    # HMAC secret used to sign the bearer token stored in the auth cookie.
    TIMELY_TOKEN_SECRET: str
    TOKEN_TTL_DAYS: int = 30
    # Only disable for plain-http local development; browsers drop Secure
    # cookies on http origins.
    COOKIE_SECURE: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8080

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def require_non_empty(cls, value: object, info: ValidationInfo) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError(f"Missing required env var {info.field_name}")
        return text

    @property
    def templates_dir(self) -> Path:
        return self.BASE_DIR / "templates"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
