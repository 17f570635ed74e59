"""
Domain models for in-memory OAuth sessions.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """External platforms the bridge holds credentials for."""

    PROCORE = "procore"
    SIGNIFLOW = "signiflow"


class PlatformSession(BaseModel):
    """Snapshot of the credentials held for a single platform."""

    model_config = ConfigDict(frozen=True)

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = Field(
        None, description="Access token expiry as epoch milliseconds."
    )

    def is_valid(self, now_ms: int) -> bool:
        return (
            self.access_token is not None
            and self.expires_at is not None
            and now_ms < self.expires_at
        )


class TokenGrant(BaseModel):
    """Result of a successful token endpoint exchange."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = Field(..., description="Lifetime of the access token in seconds.")


__all__ = ["Platform", "PlatformSession", "TokenGrant"]
