"""Expose constructed client wrappers."""

from .local_queue import InMemoryWebhookQueue, QueueClosedError, WebhookQueue
from .procore import ProcoreApiError, ProcoreClient
from .procore_auth import OAuthTokenExchangeError, ProcoreOAuthClient
from .signiflow import SigniflowClient, SigniflowError

__all__ = [
    "InMemoryWebhookQueue",
    "OAuthTokenExchangeError",
    "ProcoreApiError",
    "ProcoreClient",
    "ProcoreOAuthClient",
    "QueueClosedError",
    "SigniflowClient",
    "SigniflowError",
    "WebhookQueue",
]
