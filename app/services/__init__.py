"""Service layer exports."""

from .export_poller import (
    ExportError,
    ExportFailedError,
    ExportPoller,
    ExportStartFailedError,
    ExportTimedOutError,
)
from .session_store import SessionStore
from .token_cipher import OAuthStateEncoder, OAuthStateError, TokenCipherService
from .token_refresh import ReauthRequiredError, RefreshFailedError, TokenRefreshCoordinator
from .webhook_intake import WebhookIntakeService

__all__ = [
    "ExportError",
    "ExportFailedError",
    "ExportPoller",
    "ExportStartFailedError",
    "ExportTimedOutError",
    "OAuthStateEncoder",
    "OAuthStateError",
    "ReauthRequiredError",
    "RefreshFailedError",
    "SessionStore",
    "TokenCipherService",
    "TokenRefreshCoordinator",
    "WebhookIntakeService",
]
