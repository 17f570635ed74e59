"""
FastAPI application entrypoint for the Procore and SigniFlow bridge.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import oauth_router
from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.dependencies import (
    get_http_client,
    get_webhook_queue,
    get_webhook_worker,
    reset_shared_clients,
)

logger = logging.getLogger(__name__)


async def _stop_worker(task: asyncio.Task, grace_seconds: float) -> None:
    """Let the worker drain within the grace period, then cancel it."""
    try:
        await asyncio.wait_for(asyncio.shield(task), timeout=grace_seconds)
    except asyncio.TimeoutError:
        logger.warning("Webhook worker did not drain within %.1fs; cancelling", grace_seconds)
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    worker = get_webhook_worker()
    task = asyncio.create_task(worker.run_forever(), name="signiflow-webhook-worker")
    logger.info("Webhook worker started")
    try:
        yield
    finally:
        get_webhook_queue().close()
        await _stop_worker(task, settings.webhook.shutdown_grace_seconds)
        await get_http_client().aclose()
        reset_shared_clients()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Procore SigniFlow Bridge",
        version="0.1.0",
        description="Sends Procore commitments for signature and records completed signings.",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(oauth_router)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app", "lifespan"]
