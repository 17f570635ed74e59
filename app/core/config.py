"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app and the background webhook
worker share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class ProcoreSettings(BaseSettings):
    """Configuration required for interacting with the Procore API."""

    model_config = SettingsConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="PROCORE_CLIENT_ID")
    client_secret: str = Field(..., alias="PROCORE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., alias="PROCORE_REDIRECT_URI")
    api_base: str = Field("https://sandbox.procore.com", alias="PROCORE_API_BASE")
    login_base: str = Field(
        "https://login-sandbox.procore.com",
        alias="PROCORE_LOGIN_BASE",
        description="Host serving the OAuth consent page.",
    )


class SigniflowSettings(BaseSettings):
    """Credentials and endpoint for the SigniFlow REST service."""

    model_config = SettingsConfigDict(populate_by_name=True)

    username: str = Field(..., alias="SIGNIFLOW_USERNAME")
    password: str = Field(..., alias="SIGNIFLOW_PASSWORD")
    api_base: str = Field(
        "https://au.signiflow.com/API/SignFlowAPIServiceRest.svc/",
        alias="SIGNIFLOW_API_BASE",
    )


class ExportSettings(BaseSettings):
    """Polling parameters for Procore PDF export jobs."""

    model_config = SettingsConfigDict(populate_by_name=True)

    retry_limit: int = Field(7, alias="EXPORT_RETRY_LIMIT", ge=1)
    poll_interval_seconds: float = Field(
        2.0, alias="EXPORT_POLL_INTERVAL_SECONDS", ge=0
    )


class WebhookSettings(BaseSettings):
    """Behaviour of the webhook queue worker."""

    model_config = SettingsConfigDict(populate_by_name=True)

    handle_terminal_events: bool = Field(
        False,
        alias="WEBHOOK_HANDLE_TERMINAL_EVENTS",
        description=(
            "When enabled, rejected and cancelled signing events also patch the "
            "originating commitment."
        ),
    )
    shutdown_grace_seconds: float = Field(
        10.0, alias="WEBHOOK_SHUTDOWN_GRACE_SECONDS", ge=0
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    oauth_state_secret: Optional[str] = Field(
        None,
        alias="OAUTH_STATE_SECRET",
        description="Secret used to derive the key protecting OAuth state values.",
    )
    oauth_state_ttl_seconds: int = Field(900, alias="OAUTH_STATE_TTL")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    cors_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        ("https://sandbox.procore.com",),
        alias="CORS_ORIGINS",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    procore: ProcoreSettings = Field(default_factory=ProcoreSettings)
    signiflow: SigniflowSettings = Field(default_factory=SigniflowSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing origins as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "ExportSettings",
    "ProcoreSettings",
    "SecuritySettings",
    "SigniflowSettings",
    "WebhookSettings",
    "get_settings",
]
