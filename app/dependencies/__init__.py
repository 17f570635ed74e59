"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_completion_pipeline,
    get_export_poller,
    get_http_client,
    get_oauth_state_encoder,
    get_procore_client,
    get_procore_oauth_client,
    get_session_store,
    get_signiflow_client,
    get_token_cipher_service,
    get_token_coordinator,
    get_webhook_intake_service,
    get_webhook_queue,
    get_webhook_worker,
    reset_shared_clients,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
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
