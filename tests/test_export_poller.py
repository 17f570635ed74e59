try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio

import httpx
import pytest

from app.clients.procore import ProcoreClient
from app.core.config import ProcoreSettings
from app.models.oauth import Platform
from app.services.export_poller import (
    ExportFailedError,
    ExportPoller,
    ExportStartFailedError,
    ExportTimedOutError,
)
from app.services.token_refresh import ReauthRequiredError
from app.utils.http import RetryConfig

EXPORT_PATH = "/rest/v2.0/companies/10/projects/20/commitment_contracts/30/pdf"


class StubCoordinator:
    def __init__(self, token: str = "access-token", error: Exception | None = None) -> None:
        self.token = token
        self.error = error
        self.calls: list[Platform] = []

    async def ensure_valid(self, platform: Platform) -> str:
        self.calls.append(platform)
        if self.error is not None:
            raise self.error
        return self.token


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedExport:
    """Mock transport answering the export POST and a scripted list of GET statuses."""

    def __init__(self, get_statuses: list[int], *, start_status: int = 202) -> None:
        self.get_statuses = list(get_statuses)
        self.start_status = start_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert request.url.path == EXPORT_PATH
        if request.method == "POST":
            return httpx.Response(self.start_status)
        status = self.get_statuses.pop(0)
        content = b"%PDF-1.7 commitment" if status == 200 else b""
        return httpx.Response(status, content=content)

    @property
    def gets(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.method == "GET"]


def _poller(handler, *, coordinator=None, attempts: int = 7, sleep=None):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = ProcoreSettings(
        client_id="id",
        client_secret="secret",
        redirect_uri="https://example.com/oauth/callback",
        api_base="https://procore.example",
    )
    sleep = sleep or RecordingSleep()
    poller = ExportPoller(
        ProcoreClient(settings, http_client),
        coordinator or StubCoordinator(),
        retry_config=RetryConfig(attempts=attempts, backoff_seconds=2.0),
        sleep=sleep,
    )
    return poller, sleep


@pytest.mark.asyncio
async def test_export_returns_pdf_after_pending_responses() -> None:
    handler = ScriptedExport([202, 204, 202, 200])
    poller, sleep = _poller(handler)

    pdf = await poller.export_pdf("10", "20", "30")

    assert pdf == b"%PDF-1.7 commitment"
    assert len(handler.gets) == 4
    assert sleep.delays == [2.0, 2.0, 2.0]


@pytest.mark.asyncio
async def test_export_sends_bearer_and_company_headers() -> None:
    handler = ScriptedExport([200])
    poller, _ = _poller(handler, coordinator=StubCoordinator(token="tok-123"))

    await poller.export_pdf("10", "20", "30")

    for request in handler.requests:
        assert request.headers["Authorization"] == "Bearer tok-123"
        assert request.headers["Procore-Company-Id"] == "10"


@pytest.mark.asyncio
async def test_export_times_out_after_exact_retry_budget() -> None:
    handler = ScriptedExport([202] * 10)
    poller, sleep = _poller(handler, attempts=7)

    with pytest.raises(ExportTimedOutError):
        await poller.export_pdf("10", "20", "30")

    assert len(handler.gets) == 7
    assert len(sleep.delays) == 6


@pytest.mark.asyncio
async def test_export_fails_immediately_on_terminal_status() -> None:
    handler = ScriptedExport([404, 200])
    poller, sleep = _poller(handler)

    with pytest.raises(ExportFailedError):
        await poller.export_pdf("10", "20", "30")

    assert len(handler.gets) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_export_start_failure_skips_polling() -> None:
    handler = ScriptedExport([200], start_status=500)
    poller, _ = _poller(handler)

    with pytest.raises(ExportStartFailedError):
        await poller.export_pdf("10", "20", "30")

    assert handler.gets == []


@pytest.mark.asyncio
async def test_export_start_transport_error_is_start_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    poller, _ = _poller(handler)

    with pytest.raises(ExportStartFailedError):
        await poller.export_pdf("10", "20", "30")


@pytest.mark.asyncio
async def test_export_propagates_reauth_required() -> None:
    handler = ScriptedExport([200])
    coordinator = StubCoordinator(error=ReauthRequiredError("sign in again"))
    poller, _ = _poller(handler, coordinator=coordinator)

    with pytest.raises(ReauthRequiredError):
        await poller.export_pdf("10", "20", "30")

    assert handler.requests == []


@pytest.mark.asyncio
async def test_export_checks_token_before_every_poll() -> None:
    handler = ScriptedExport([202, 200])
    coordinator = StubCoordinator()
    poller, _ = _poller(handler, coordinator=coordinator)

    await poller.export_pdf("10", "20", "30")

    assert coordinator.calls == [Platform.PROCORE] * 3


class BlockingSleep:
    """Sleep that never finishes on its own, so the caller must be cancelled out of it."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.started.set()
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_cancelling_during_backoff_stops_polling() -> None:
    handler = ScriptedExport([202, 200])
    sleep = BlockingSleep()
    poller, _ = _poller(handler, sleep=sleep)

    task = asyncio.create_task(poller.export_pdf("10", "20", "30"))
    await asyncio.wait_for(sleep.started.wait(), timeout=1)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0.01)
    assert len(handler.gets) == 1
