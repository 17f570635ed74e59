"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

import httpx

from agents.signature_completion.pipeline import DocumentCompletionPipeline
from agents.signature_completion.worker import WebhookWorker
from app.clients import (
    InMemoryWebhookQueue,
    ProcoreClient,
    ProcoreOAuthClient,
    SigniflowClient,
    WebhookQueue,
)
from app.core.config import get_settings
from app.models.oauth import Platform
from app.services import (
    ExportPoller,
    OAuthStateEncoder,
    SessionStore,
    TokenCipherService,
    TokenRefreshCoordinator,
    WebhookIntakeService,
)
from app.utils.http import RetryConfig


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """Provide the shared outbound HTTP client; closed by the app lifespan."""
    return httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for OAuth state values."""
    settings = _settings()
    secret = settings.security.oauth_state_secret or settings.procore.client_secret
    return TokenCipherService(secret=secret)


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder with the configured TTL."""
    settings = _settings()
    return OAuthStateEncoder(
        get_token_cipher_service(),
        ttl_seconds=settings.security.oauth_state_ttl_seconds,
    )


@lru_cache()
def get_procore_oauth_client() -> ProcoreOAuthClient:
    """Create a singleton Procore OAuth client."""
    return ProcoreOAuthClient(_settings().procore, get_http_client())


@lru_cache()
def get_signiflow_client() -> SigniflowClient:
    """Provide SigniFlow REST client instance."""
    return SigniflowClient(_settings().signiflow, get_http_client())


@lru_cache()
def get_procore_client() -> ProcoreClient:
    """Provide Procore REST client instance."""
    return ProcoreClient(_settings().procore, get_http_client())


@lru_cache()
def get_session_store() -> SessionStore:
    """Provide the process-wide session store."""
    return SessionStore()


@lru_cache()
def get_token_coordinator() -> TokenRefreshCoordinator:
    """Provide the single owner of session refreshes."""
    return TokenRefreshCoordinator(
        get_session_store(),
        {
            Platform.PROCORE: get_procore_oauth_client(),
            Platform.SIGNIFLOW: get_signiflow_client(),
        },
    )


def get_export_poller() -> ExportPoller:
    """Build an export poller using the configured retry budget."""
    settings = _settings()
    return ExportPoller(
        get_procore_client(),
        get_token_coordinator(),
        retry_config=RetryConfig(
            attempts=settings.export.retry_limit,
            backoff_seconds=settings.export.poll_interval_seconds,
        ),
    )


@lru_cache()
def get_webhook_queue() -> WebhookQueue:
    """Provide the in-process webhook queue."""
    return InMemoryWebhookQueue()


def get_webhook_intake_service() -> WebhookIntakeService:
    """Build a webhook intake service bound to the shared queue."""
    return WebhookIntakeService(get_webhook_queue())


def get_completion_pipeline() -> DocumentCompletionPipeline:
    """Build the document-completion pipeline."""
    return DocumentCompletionPipeline(get_procore_client(), get_signiflow_client())


def get_webhook_worker() -> WebhookWorker:
    """Build the background worker draining the webhook queue."""
    settings = _settings()
    return WebhookWorker(
        get_webhook_queue(),
        get_token_coordinator(),
        get_completion_pipeline(),
        handle_terminal_events=settings.webhook.handle_terminal_events,
    )


def reset_shared_clients() -> None:
    """Forget the HTTP client and queue closed at shutdown, and everything bound to them.

    The session store survives so a restart in the same process keeps its logins.
    """
    for factory in (
        get_http_client,
        get_procore_oauth_client,
        get_signiflow_client,
        get_procore_client,
        get_token_coordinator,
        get_webhook_queue,
    ):
        factory.cache_clear()


__all__ = [
    "get_completion_pipeline",
    "get_export_poller",
    "get_http_client",
    "get_oauth_state_encoder",
    "get_procore_client",
    "get_procore_oauth_client",
    "get_session_store",
    "get_signiflow_client",
    "get_token_cipher_service",
    "get_token_coordinator",
    "get_webhook_intake_service",
    "get_webhook_queue",
    "get_webhook_worker",
    "reset_shared_clients",
]
