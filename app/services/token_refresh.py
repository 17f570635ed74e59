"""
Coordinates access-token validity and refreshes for every external platform.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Dict, Mapping, Protocol

from app.clients.procore_auth import OAuthTokenExchangeError
from app.clients.signiflow import SigniflowError
from app.models.oauth import Platform, PlatformSession, TokenGrant
from app.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class ReauthRequiredError(Exception):
    """Raised when no refreshable session exists and the user must sign in again."""


class RefreshFailedError(Exception):
    """Raised when the token exchange fails; the stale session is kept as-is."""


class TokenClient(Protocol):
    requires_refresh_token: bool

    async def refresh(self, refresh_token: str | None) -> TokenGrant: ...


class TokenRefreshCoordinator:
    """Single owner of session mutation.

    Refreshes are single-flight per platform: callers that find an expired
    session while a refresh is already running await that refresh and share
    its outcome instead of issuing another token request.
    """

    def __init__(self, store: SessionStore, clients: Mapping[Platform, TokenClient]) -> None:
        self._store = store
        self._clients = dict(clients)
        self._inflight: Dict[Platform, asyncio.Future[str]] = {}

    @property
    def store(self) -> SessionStore:
        return self._store

    async def ensure_valid(self, platform: Platform) -> str:
        """Return a non-expired access token, refreshing first when needed."""
        session = self._store.get(platform)
        if session.is_valid(self._store.now_ms()):
            return session.access_token  # type: ignore[return-value]
        return await self.refresh(platform)

    async def refresh(self, platform: Platform) -> str:
        """Refresh unconditionally, joining an in-flight refresh if one exists."""
        inflight = self._inflight.get(platform)
        if inflight is None:
            inflight = asyncio.ensure_future(self._refresh(platform))
            self._inflight[platform] = inflight
            inflight.add_done_callback(partial(self._clear_inflight, platform))
        # A cancelled caller must not cancel the refresh other callers await.
        return await asyncio.shield(inflight)

    def store_grant(self, platform: Platform, grant: TokenGrant) -> PlatformSession:
        """Install credentials obtained outside a refresh (e.g. code exchange)."""
        previous = self._store.get(platform)
        session = PlatformSession(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or previous.refresh_token,
            expires_at=self._store.now_ms() + grant.expires_in * 1000,
        )
        self._store.replace(platform, session)
        return session

    async def _refresh(self, platform: Platform) -> str:
        session = self._store.get(platform)
        client = self._clients[platform]
        if client.requires_refresh_token and not session.refresh_token:
            raise ReauthRequiredError(
                f"No {platform.value} refresh token available; sign in again."
            )

        try:
            grant = await client.refresh(session.refresh_token)
        except (OAuthTokenExchangeError, SigniflowError) as exc:
            logger.error("Token refresh failed: %s", exc, extra={"platform": platform.value})
            raise RefreshFailedError(str(exc)) from exc

        current = self._store.get(platform)
        if current is not session:
            # A code exchange landed while the refresh was in flight; it wins.
            logger.info(
                "Session replaced during refresh; discarding refreshed token",
                extra={"platform": platform.value},
            )
            return current.access_token  # type: ignore[return-value]

        self.store_grant(platform, grant)
        logger.info("Access token refreshed", extra={"platform": platform.value})
        return grant.access_token

    def _clear_inflight(self, platform: Platform, future: asyncio.Future[str]) -> None:
        if self._inflight.get(platform) is future:
            del self._inflight[platform]
        if not future.cancelled():
            # Mark the outcome as retrieved even when every waiter went away.
            future.exception()


__all__ = [
    "ReauthRequiredError",
    "RefreshFailedError",
    "TokenClient",
    "TokenRefreshCoordinator",
]
