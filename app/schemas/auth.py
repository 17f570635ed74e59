"""Schemas related to OAuth flows and session status."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthStatus(BaseModel):
    """Procore session status as reported by ``/api/auth/status``."""

    model_config = ConfigDict(populate_by_name=True)

    authenticated: bool
    expires_at: Optional[int] = Field(
        None, alias="expiresAt", description="Access token expiry as epoch milliseconds."
    )


class AuthRefreshResponse(BaseModel):
    """Outcome of a synchronous Procore token refresh."""

    model_config = ConfigDict(populate_by_name=True)

    refreshed: bool
    login_required: bool = Field(..., alias="loginRequired")
    auth: AuthStatus


class PlatformStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authenticated: bool
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")


class ConnectionStatus(BaseModel):
    """Combined view of the Procore and SigniFlow sessions."""

    model_config = ConfigDict(populate_by_name=True)

    procore: PlatformStatus
    signiflow: PlatformStatus
    authenticated: bool
    next_expires_at: Optional[datetime] = Field(None, alias="nextExpiresAt")
    error: Optional[str] = None


class OAuthConnected(BaseModel):
    """Returned to API clients once both platforms are connected."""

    status: str = "connected"


class OAuthStartResponse(BaseModel):
    authorization_url: str
    state: str


__all__ = [
    "AuthRefreshResponse",
    "AuthStatus",
    "ConnectionStatus",
    "OAuthConnected",
    "OAuthStartResponse",
    "PlatformStatus",
]
