try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import pytest

from agents.signature_completion.models import PipelineOutcomeKind
from agents.signature_completion.pipeline import DocumentCompletionPipeline, signed_document_name
from app.clients.procore import ProcoreApiError
from app.clients.signiflow import SigniflowError
from app.schemas.webhook import WebhookEvent

METADATA = {"projectId": "20", "commitmentId": "30", "companyId": "10"}


class RecordingSigniflow:
    def __init__(self, calls: list, *, error: Exception | None = None) -> None:
        self.calls = calls
        self.error = error

    async def download_document(self, document_url: str) -> bytes:
        self.calls.append(("download", document_url))
        if self.error is not None:
            raise self.error
        return b"%PDF signed"


class RecordingProcore:
    def __init__(
        self,
        calls: list,
        *,
        upload_error: Exception | None = None,
        patch_error: Exception | None = None,
    ) -> None:
        self.calls = calls
        self.upload_error = upload_error
        self.patch_error = patch_error
        self.uploads: list[dict] = []
        self.patches: list = []

    async def upload_document(self, **kwargs) -> str:
        self.calls.append(("upload", kwargs["project_id"]))
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads.append(kwargs)
        return f"upload-{len(self.uploads)}"

    async def patch_commitment(self, metadata, patch, *, access_token: str) -> dict:
        self.calls.append(("patch", metadata.commitment_id))
        if self.patch_error is not None:
            raise self.patch_error
        self.patches.append((metadata, patch, access_token))
        return {}


def _event(**overrides) -> WebhookEvent:
    payload = {
        "EventType": "DocumentCompleted",
        "Status": "Completed",
        "DocID": "doc-1",
        "DocumentUrl": "https://signiflow.example/docs/doc-1.pdf",
        "DocumentName": "Subcontract 30.pdf",
        "CompletedDate": "/Date(1762164000000+0000)/",
        "AdditionalData": json.dumps(METADATA),
    }
    payload.update(overrides)
    return WebhookEvent.model_validate(payload)


def _pipeline(calls: list, **kwargs):
    signiflow = RecordingSigniflow(calls, error=kwargs.pop("download_error", None))
    procore = RecordingProcore(calls, **kwargs)
    return DocumentCompletionPipeline(procore, signiflow), procore


@pytest.mark.asyncio
async def test_completed_event_downloads_uploads_and_patches_in_order() -> None:
    calls: list = []
    pipeline, procore = _pipeline(calls)

    outcome = await pipeline.process_completed(_event(), access_token="tok")

    assert outcome.kind is PipelineOutcomeKind.COMPLETED
    assert outcome.upload_id == "upload-1"
    assert calls == [
        ("download", "https://signiflow.example/docs/doc-1.pdf"),
        ("upload", "20"),
        ("patch", "30"),
    ]
    upload = procore.uploads[0]
    assert upload["company_id"] == "10"
    assert upload["file_name"] == "Subcontract 30 Signed.pdf"
    assert upload["content"] == b"%PDF signed"
    _, patch, token = procore.patches[0]
    assert token == "tok"
    assert patch.to_payload() == {
        "status": "complete",
        "contract_date": "2025-11-03",
        "upload_ids": ["upload-1"],
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "additional_data",
    [None, "", "{not json", json.dumps({"projectId": "20"}), json.dumps(["20", "30"])],
)
async def test_malformed_metadata_makes_no_outbound_calls(additional_data) -> None:
    calls: list = []
    pipeline, _ = _pipeline(calls)

    outcome = await pipeline.process_completed(
        _event(AdditionalData=additional_data), access_token="tok"
    )

    assert outcome.kind is PipelineOutcomeKind.MALFORMED_PAYLOAD
    assert calls == []


@pytest.mark.asyncio
async def test_metadata_accepts_object_and_numeric_ids() -> None:
    calls: list = []
    pipeline, procore = _pipeline(calls)

    outcome = await pipeline.process_completed(
        _event(AdditionalData={"ProjectId": 20, "CommitmentId": 30, "CompanyId": 10}),
        access_token="tok",
    )

    assert outcome.succeeded
    metadata, _, _ = procore.patches[0]
    assert (metadata.project_id, metadata.commitment_id, metadata.company_id) == ("20", "30", "10")


@pytest.mark.asyncio
async def test_missing_document_url_aborts_before_download() -> None:
    calls: list = []
    pipeline, _ = _pipeline(calls)

    outcome = await pipeline.process_completed(_event(DocumentUrl=None), access_token="tok")

    assert outcome.kind is PipelineOutcomeKind.MISSING_DOCUMENT
    assert calls == []


@pytest.mark.asyncio
async def test_download_failure_stops_pipeline() -> None:
    calls: list = []
    pipeline, _ = _pipeline(calls, download_error=SigniflowError("Document download returned 403."))

    outcome = await pipeline.process_completed(_event(), access_token="tok")

    assert outcome.kind is PipelineOutcomeKind.STEP_FAILED
    assert outcome.step == "download"
    assert [name for name, _ in calls] == ["download"]


@pytest.mark.asyncio
async def test_upload_failure_skips_patch() -> None:
    calls: list = []
    pipeline, _ = _pipeline(calls, upload_error=ProcoreApiError("boom", status_code=500))

    outcome = await pipeline.process_completed(_event(), access_token="tok")

    assert outcome.step == "upload"
    assert [name for name, _ in calls] == ["download", "upload"]


@pytest.mark.asyncio
async def test_patch_failure_keeps_upload_without_rollback() -> None:
    calls: list = []
    pipeline, procore = _pipeline(calls, patch_error=ProcoreApiError("denied", status_code=403))

    outcome = await pipeline.process_completed(_event(), access_token="tok")

    assert outcome.kind is PipelineOutcomeKind.STEP_FAILED
    assert outcome.step == "patch"
    assert outcome.upload_id == "upload-1"
    assert len(procore.uploads) == 1
    assert not outcome.succeeded


@pytest.mark.asyncio
async def test_duplicate_doc_id_is_processed_twice() -> None:
    calls: list = []
    pipeline, procore = _pipeline(calls)

    first = await pipeline.process_completed(_event(), access_token="tok")
    second = await pipeline.process_completed(_event(), access_token="tok")

    assert first.upload_id == "upload-1"
    assert second.upload_id == "upload-2"
    assert len(procore.patches) == 2


@pytest.mark.asyncio
async def test_terminal_event_patches_status_without_upload() -> None:
    calls: list = []
    pipeline, procore = _pipeline(calls)

    outcome = await pipeline.process_terminal(
        _event(EventType="DocumentRejected"), status="Terminated", access_token="tok"
    )

    assert outcome.kind is PipelineOutcomeKind.COMPLETED
    assert calls == [("patch", "30")]
    _, patch, _ = procore.patches[0]
    assert patch.to_payload() == {"status": "Terminated", "contract_date": "2025-11-03"}


@pytest.mark.parametrize(
    ("document_name", "expected"),
    [
        ("Subcontract.pdf", "Subcontract Signed.pdf"),
        ("Subcontract.PDF", "Subcontract Signed.pdf"),
        ("Subcontract", "Subcontract Signed.pdf"),
        (None, "Signed Commitment 30.pdf"),
        ("   ", "Signed Commitment 30.pdf"),
    ],
)
def test_signed_document_name(document_name, expected) -> None:
    event = _event(DocumentName=document_name)

    assert signed_document_name(event, event.metadata()) == expected
