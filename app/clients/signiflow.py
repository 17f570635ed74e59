"""SigniFlow REST client wrapper."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

import httpx

from app.core.config import SigniflowSettings
from app.models.oauth import TokenGrant
from app.utils.dates import parse_microsoft_date

logger = logging.getLogger(__name__)


class SigniflowError(Exception):
    """Raised when SigniFlow rejects a request or cannot be reached."""


class SigniflowClient:
    """Log in to SigniFlow and download signed documents."""

    # Sessions come from a credential login, so no refresh token is involved.
    requires_refresh_token = False

    def __init__(self, settings: SigniflowSettings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client

    def _url(self, endpoint: str) -> str:
        return f"{self._settings.api_base.rstrip('/')}/{endpoint}"

    async def login(self) -> TokenGrant:
        """Authenticate with the configured service account."""
        logger.info("Signing in to SigniFlow as %s", self._settings.username)
        body = await self._post(
            "Login",
            {
                "UserNameField": self._settings.username,
                "PasswordField": self._settings.password,
            },
        )
        if body.get("ResultField") != "Success":
            raise SigniflowError(f"SigniFlow login failed: {body.get('ResultField')}")

        token = body.get("TokenField") or {}
        access_token = token.get("TokenField")
        expiry_raw = token.get("TokenExpiryField")
        if not access_token or not expiry_raw:
            raise SigniflowError("SigniFlow login response is missing its token.")

        try:
            expiry = parse_microsoft_date(expiry_raw)
        except ValueError as exc:
            raise SigniflowError(str(exc)) from exc
        expires_in = max(0, int(expiry.timestamp() - time.time()))
        return TokenGrant(access_token=access_token, expires_in=expires_in)

    async def refresh(self, refresh_token: str | None) -> TokenGrant:
        return await self.login()

    async def download_document(self, document_url: str) -> bytes:
        """Fetch the signed PDF bytes from a webhook-supplied document URL."""
        try:
            response = await self._http.get(document_url, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise SigniflowError(f"Document download failed: {exc}") from exc
        if response.status_code != httpx.codes.OK:
            raise SigniflowError(
                f"Document download returned {response.status_code}."
            )
        if not response.content:
            raise SigniflowError("Document download returned an empty body.")
        return response.content

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._http.post(self._url(endpoint), json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SigniflowError(f"SigniFlow {endpoint} request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise SigniflowError(f"SigniFlow {endpoint} returned invalid JSON.") from exc


__all__ = ["SigniflowClient", "SigniflowError"]
