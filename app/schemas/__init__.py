"""Public schema exports."""

from .auth import (
    AuthRefreshResponse,
    AuthStatus,
    ConnectionStatus,
    OAuthConnected,
    OAuthStartResponse,
    PlatformStatus,
)
from .procore import CommitmentMetadata, CommitmentPatch, CommitmentStatus, ProcoreContext
from .send import SendRequest, SendResponse
from .webhook import MalformedWebhookPayload, WebhookAck, WebhookEvent

__all__ = [
    "AuthRefreshResponse",
    "AuthStatus",
    "CommitmentMetadata",
    "CommitmentPatch",
    "CommitmentStatus",
    "ConnectionStatus",
    "MalformedWebhookPayload",
    "OAuthConnected",
    "OAuthStartResponse",
    "PlatformStatus",
    "ProcoreContext",
    "SendRequest",
    "SendResponse",
    "WebhookAck",
    "WebhookEvent",
]
