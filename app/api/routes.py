"""
FastAPI routes for the Procore and SigniFlow bridge.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from app.clients.procore_auth import OAuthTokenExchangeError
from app.dependencies import (
    SettingsDependency,
    get_export_poller,
    get_oauth_state_encoder,
    get_procore_oauth_client,
    get_token_coordinator,
    get_webhook_intake_service,
)
from app.models.oauth import Platform
from app.schemas import (
    AuthRefreshResponse,
    AuthStatus,
    ConnectionStatus,
    OAuthConnected,
    OAuthStartResponse,
    PlatformStatus,
    SendRequest,
    SendResponse,
    WebhookAck,
    WebhookEvent,
)
from app.services import (
    ExportError,
    OAuthStateError,
    ReauthRequiredError,
    RefreshFailedError,
    TokenRefreshCoordinator,
)

router = APIRouter()
oauth_router = APIRouter()
logger = logging.getLogger(__name__)


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


def _procore_status(coordinator: TokenRefreshCoordinator) -> AuthStatus:
    store = coordinator.store
    return AuthStatus(
        authenticated=store.is_authenticated(Platform.PROCORE),
        expires_at=store.get(Platform.PROCORE).expires_at,
    )


def _connection_status(
    coordinator: TokenRefreshCoordinator, error: Optional[str] = None
) -> ConnectionStatus:
    store = coordinator.store
    statuses = {}
    for platform in Platform:
        expires_at = store.get(platform).expires_at
        statuses[platform] = PlatformStatus(
            authenticated=store.is_authenticated(platform),
            expires_at=(
                datetime.fromtimestamp(expires_at / 1000, tz=timezone.utc)
                if expires_at is not None
                else None
            ),
        )
    expiries = [status.expires_at for status in statuses.values() if status.expires_at]
    return ConnectionStatus(
        procore=statuses[Platform.PROCORE],
        signiflow=statuses[Platform.SIGNIFLOW],
        authenticated=all(status.authenticated for status in statuses.values()),
        next_expires_at=min(expiries) if expiries else None,
        error=error,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@oauth_router.get("/oauth/start", response_model=OAuthStartResponse)
async def start_procore_oauth_flow(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_procore_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Procore consent screen.",
    ),
) -> Any:
    """
    Kick off the OAuth flow by generating a state token and authorization URL.
    """
    state = state_encoder.encode(
        {
            "nonce": uuid.uuid4().hex,
            "issued_at": datetime.now(timezone.utc).isoformat(),
        }
    )
    authorization_url = oauth_client.build_authorization_url(state=state)

    if redirect or _wants_html(request):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return OAuthStartResponse(authorization_url=authorization_url, state=state)


@oauth_router.get("/oauth/callback")
async def handle_procore_oauth_callback(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_procore_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    coordinator: Annotated[Any, Depends(get_token_coordinator)],
    settings: SettingsDependency,
    code: Optional[str] = Query(default=None, description="Authorization code from Procore."),
    state: Optional[str] = Query(default=None, description="OAuth state token."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    """Complete the Procore exchange, then sign in to SigniFlow."""
    if not code:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Missing code")
    if not state:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Missing state")

    try:
        state_encoder.decode(state)
    except OAuthStateError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    try:
        grant = await oauth_client.exchange_authorization_code(code)
    except OAuthTokenExchangeError as exc:
        logger.error("Procore token exchange failed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Failed to exchange authorization code.",
        ) from exc
    coordinator.store_grant(Platform.PROCORE, grant)

    try:
        await coordinator.refresh(Platform.SIGNIFLOW)
    except RefreshFailedError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail="Procore connected but SigniFlow sign-in failed.",
        ) from exc

    if settings.frontend_base_url and (redirect or _wants_html(request)):
        return RedirectResponse(
            url=str(settings.frontend_base_url), status_code=HTTPStatus.TEMPORARY_REDIRECT
        )

    return JSONResponse(content=OAuthConnected().model_dump())


@router.get("/oauth/status", response_model=ConnectionStatus)
async def get_connection_status(
    coordinator: Annotated[Any, Depends(get_token_coordinator)],
) -> ConnectionStatus:
    return _connection_status(coordinator)


@router.post("/oauth/refresh", response_model=ConnectionStatus)
async def refresh_connections(
    coordinator: Annotated[Any, Depends(get_token_coordinator)],
) -> ConnectionStatus:
    """Refresh whichever platform session is no longer valid."""
    store = coordinator.store
    error = None
    if not store.is_authenticated(Platform.PROCORE):
        try:
            await coordinator.refresh(Platform.PROCORE)
        except (ReauthRequiredError, RefreshFailedError) as exc:
            logger.info("Procore session not refreshed: %s", exc)
    if not store.is_authenticated(Platform.SIGNIFLOW):
        try:
            await coordinator.refresh(Platform.SIGNIFLOW)
        except RefreshFailedError as exc:
            error = str(exc)
    return _connection_status(coordinator, error)


@router.get("/auth/status", response_model=AuthStatus)
async def get_auth_status(
    coordinator: Annotated[Any, Depends(get_token_coordinator)],
) -> AuthStatus:
    return _procore_status(coordinator)


@router.post("/auth/refresh", response_model=AuthRefreshResponse)
async def refresh_procore_token(
    coordinator: Annotated[Any, Depends(get_token_coordinator)],
) -> AuthRefreshResponse:
    """Refresh the Procore token; a missing or rejected grant asks for a new login."""
    try:
        await coordinator.refresh(Platform.PROCORE)
    except (ReauthRequiredError, RefreshFailedError) as exc:
        logger.info("Procore refresh requires login: %s", exc)
        return AuthRefreshResponse(
            refreshed=False, login_required=True, auth=_procore_status(coordinator)
        )
    return AuthRefreshResponse(
        refreshed=True, login_required=False, auth=_procore_status(coordinator)
    )


@router.post("/send")
async def send_commitment(
    request: Request,
    coordinator: Annotated[Any, Depends(get_token_coordinator)],
    export_poller: Annotated[Any, Depends(get_export_poller)],
) -> JSONResponse:
    """Export the commitment PDF from Procore ahead of sending it for signature."""
    try:
        await coordinator.ensure_valid(Platform.PROCORE)
    except (ReauthRequiredError, RefreshFailedError):
        return _error(HTTPStatus.UNAUTHORIZED, "Not authenticated with Procore")

    try:
        body = await request.json()
    except ValueError:
        return _error(HTTPStatus.BAD_REQUEST, "Invalid JSON body")

    if not isinstance(body, dict) or "form" not in body or "context" not in body:
        return _error(HTTPStatus.BAD_REQUEST, "Missing form or context")

    try:
        payload = SendRequest.model_validate(body)
    except ValidationError as exc:
        if any(error["loc"][:1] == ("context",) for error in exc.errors()):
            return _error(HTTPStatus.BAD_REQUEST, "Invalid Procore context")
        return _error(HTTPStatus.BAD_REQUEST, "Invalid form")
    context = payload.context

    logger.info(
        "Send request received",
        extra={"commitment_id": context.object_id, "project_id": context.project_id},
    )
    try:
        pdf_bytes = await export_poller.export_pdf(
            context.company_id, context.project_id, context.object_id
        )
    except (ReauthRequiredError, RefreshFailedError):
        return _error(HTTPStatus.UNAUTHORIZED, "Not authenticated with Procore")
    except ExportError as exc:
        return _error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))

    # TODO: forward the exported PDF and form fields to SigniFlow's workflow API.
    response = SendResponse(pdf_size=len(pdf_bytes))
    return JSONResponse(content=response.model_dump(by_alias=True))


@router.post("/webhooks/signiflow", response_model=WebhookAck)
async def receive_signiflow_webhook(
    event: WebhookEvent,
    intake_service: Annotated[Any, Depends(get_webhook_intake_service)],
) -> WebhookAck:
    """Acknowledge a SigniFlow webhook and queue it for background processing."""
    try:
        await intake_service.accept(event)
    except Exception as exc:
        logger.exception("Failed to enqueue webhook", extra={"doc_id": event.doc_id})
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to queue webhook event.",
        ) from exc
    return WebhookAck()


__all__ = ["oauth_router", "router"]
