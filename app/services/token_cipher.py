"""Symmetric encryption utilities for protecting OAuth state values."""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken


class OAuthStateError(Exception):
    """Raised when an OAuth state value is tampered with or expired."""


class TokenCipherService:
    """Encrypt and decrypt sensitive strings using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext string and return the ciphertext."""
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return token.decode("utf-8")

    def decrypt(self, ciphertext: str, *, ttl_seconds: int | None = None) -> str:
        """Decrypt a ciphertext, rejecting it when older than ``ttl_seconds``."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"), ttl=ttl_seconds)
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid or expired ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")


class OAuthStateEncoder:
    """Encode OAuth state payloads into opaque, time-limited tokens."""

    def __init__(self, cipher: TokenCipherService, *, ttl_seconds: int) -> None:
        self._cipher = cipher
        self._ttl = ttl_seconds

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return self._cipher.encrypt(serialized)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            serialized = self._cipher.decrypt(token, ttl_seconds=self._ttl)
        except ValueError as exc:
            raise OAuthStateError("OAuth state is invalid or has expired.") from exc
        return json.loads(serialized)


__all__ = ["OAuthStateEncoder", "OAuthStateError", "TokenCipherService"]
