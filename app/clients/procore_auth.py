"""
Procore OAuth utilities.

These helpers manage the authorization-code flow and the refresh-token
lifecycle against Procore's token endpoint.
"""

from __future__ import annotations

from urllib.parse import urlencode

import httpx

from app.core.config import ProcoreSettings
from app.models.oauth import TokenGrant


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint fails or returns an unusable payload."""


class ProcoreOAuthClient:
    """Build Procore authorization URLs and exchange codes or refresh tokens."""

    requires_refresh_token = True

    def __init__(self, settings: ProcoreSettings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client

    @property
    def token_url(self) -> str:
        return f"{self._settings.api_base.rstrip('/')}/oauth/token"

    def build_authorization_url(self, state: str) -> str:
        """Construct the Procore consent URL."""
        params = {
            "response_type": "code",
            "client_id": self._settings.client_id,
            "redirect_uri": str(self._settings.redirect_uri),
            "state": state,
        }
        return f"{self._settings.login_base.rstrip('/')}/oauth/authorize?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for an access/refresh token pair."""
        payload = {
            "grant_type": "authorization_code",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "redirect_uri": str(self._settings.redirect_uri),
            "code": code,
        }
        grant = await self._post_token(payload)
        if not grant.refresh_token:
            raise OAuthTokenExchangeError("Procore did not return a refresh token.")
        return grant

    async def refresh(self, refresh_token: str | None) -> TokenGrant:
        """Refresh the access token; Procore may omit refresh-token rotation."""
        if not refresh_token:
            raise OAuthTokenExchangeError("A refresh token is required.")
        payload = {
            "grant_type": "refresh_token",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "refresh_token": refresh_token,
        }
        return await self._post_token(payload)

    async def _post_token(self, payload: dict[str, str]) -> TokenGrant:
        try:
            response = await self._http.post(self.token_url, json=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if not response.is_success:
            raise OAuthTokenExchangeError(
                f"Token endpoint returned {response.status_code}: {response.text}"
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token endpoint returned invalid JSON.") from exc

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or expires_in is None:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Procore.")

        return TokenGrant(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            expires_in=int(expires_in),
        )


__all__ = ["OAuthTokenExchangeError", "ProcoreOAuthClient"]
