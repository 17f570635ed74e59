try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from app.main import app
from app.models.oauth import Platform
from app.services.export_poller import ExportFailedError, ExportTimedOutError
from app.services.token_refresh import ReauthRequiredError

VALID_BODY = {
    "form": {"signers": [{"email": "pm@example.com"}]},
    "context": {"company_id": "10", "project_id": "20", "object_id": "30", "view": "commitments"},
}


class StubCoordinator:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def ensure_valid(self, platform: Platform) -> str:
        if self.error is not None:
            raise self.error
        return "procore-token"


class StubExportPoller:
    def __init__(self, *, pdf: bytes = b"%PDF-1.7 body", error: Exception | None = None) -> None:
        self.pdf = pdf
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def export_pdf(self, company_id: str, project_id: str, commitment_id: str) -> bytes:
        self.calls.append((company_id, project_id, commitment_id))
        if self.error is not None:
            raise self.error
        return self.pdf


@pytest.fixture()
def send_overrides():
    from app import dependencies

    state = {"coordinator": StubCoordinator(), "poller": StubExportPoller()}
    app.dependency_overrides.update(
        {
            dependencies.get_token_coordinator: lambda: state["coordinator"],
            dependencies.get_export_poller: lambda: state["poller"],
        }
    )

    yield state

    app.dependency_overrides.clear()


async def _post(**kwargs) -> httpx.Response:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        return await client.post("/api/send", **kwargs)


@pytest.mark.anyio
async def test_send_exports_commitment_pdf(send_overrides):
    response = await _post(json=VALID_BODY)

    assert response.status_code == 200
    assert response.json() == {"success": True, "pdfSize": len(b"%PDF-1.7 body")}
    assert send_overrides["poller"].calls == [("10", "20", "30")]


@pytest.mark.anyio
async def test_send_accepts_numeric_context_ids(send_overrides):
    body = {"form": {}, "context": {"company_id": 10, "project_id": 20, "object_id": 30}}

    response = await _post(json=body)

    assert response.status_code == 200
    assert send_overrides["poller"].calls == [("10", "20", "30")]


@pytest.mark.anyio
async def test_send_requires_procore_session(send_overrides):
    send_overrides["coordinator"] = StubCoordinator(error=ReauthRequiredError("sign in"))

    response = await _post(json=VALID_BODY)

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated with Procore"}
    assert send_overrides["poller"].calls == []


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("kwargs", "error"),
    [
        ({"content": b"{not json", "headers": {"content-type": "application/json"}}, "Invalid JSON body"),
        ({"json": {"form": {}}}, "Missing form or context"),
        ({"json": ["form", "context"]}, "Missing form or context"),
        ({"json": {"form": {}, "context": {"company_id": "10", "project_id": "20"}}}, "Invalid Procore context"),
        ({"json": {"form": {}, "context": {"company_id": "", "project_id": "20", "object_id": "30"}}}, "Invalid Procore context"),
        ({"json": {"form": ["signer"], "context": VALID_BODY["context"]}}, "Invalid form"),
    ],
)
async def test_send_rejects_invalid_bodies(send_overrides, kwargs, error):
    response = await _post(**kwargs)

    assert response.status_code == 400
    assert response.json() == {"error": error}
    assert send_overrides["poller"].calls == []


@pytest.mark.anyio
@pytest.mark.parametrize(
    "export_error",
    [ExportFailedError("PDF export failed with status 404"), ExportTimedOutError("PDF export timed out")],
)
async def test_send_reports_export_failures(send_overrides, export_error):
    send_overrides["poller"] = StubExportPoller(error=export_error)

    response = await _post(json=VALID_BODY)

    assert response.status_code == 500
    assert response.json() == {"error": str(export_error)}
