"""
Document-completion pipeline: signed PDF from SigniFlow back onto the Procore commitment.
"""

from __future__ import annotations

import logging

from agents.signature_completion.models import PipelineOutcome, PipelineOutcomeKind
from app.clients.procore import ProcoreApiError, ProcoreClient
from app.clients.signiflow import SigniflowClient, SigniflowError
from app.schemas.procore import CommitmentMetadata, CommitmentPatch, CommitmentStatus
from app.schemas.webhook import MalformedWebhookPayload, WebhookEvent

logger = logging.getLogger(__name__)


def signed_document_name(event: WebhookEvent, metadata: CommitmentMetadata) -> str:
    """Name the uploaded file after the signed document."""
    name = (event.document_name or "").strip()
    if name:
        if name.lower().endswith(".pdf"):
            name = name[: -len(".pdf")]
        return f"{name} Signed.pdf"
    return f"Signed Commitment {metadata.commitment_id}.pdf"


class DocumentCompletionPipeline:
    """Sequence the download, upload and patch steps for one webhook event.

    Every step depends on the previous one succeeding. Failures come back as
    a ``PipelineOutcome`` rather than an exception, and nothing is rolled back:
    an upload that succeeded stays in Procore even if the patch then fails.
    """

    def __init__(self, procore_client: ProcoreClient, signiflow_client: SigniflowClient) -> None:
        self._procore = procore_client
        self._signiflow = signiflow_client

    async def process_completed(
        self, event: WebhookEvent, *, access_token: str
    ) -> PipelineOutcome:
        try:
            metadata = event.metadata()
        except MalformedWebhookPayload as exc:
            return PipelineOutcome(PipelineOutcomeKind.MALFORMED_PAYLOAD, str(exc))

        log_extra = {"doc_id": event.doc_id, "commitment_id": metadata.commitment_id}

        # TODO: fall back to SigniFlow's GetDoc call by doc_id once the
        # webhook contract for URL-less events is settled.
        if not event.document_url:
            return PipelineOutcome(
                PipelineOutcomeKind.MISSING_DOCUMENT,
                "Webhook event carries no document URL.",
            )

        logger.info("Downloading signed document", extra=log_extra)
        try:
            pdf = await self._signiflow.download_document(event.document_url)
        except SigniflowError as exc:
            return PipelineOutcome(PipelineOutcomeKind.STEP_FAILED, str(exc), step="download")

        try:
            upload_id = await self._procore.upload_document(
                access_token=access_token,
                company_id=metadata.company_id,
                project_id=metadata.project_id,
                file_name=signed_document_name(event, metadata),
                content=pdf,
            )
        except ProcoreApiError as exc:
            return PipelineOutcome(PipelineOutcomeKind.STEP_FAILED, str(exc), step="upload")

        patch = CommitmentPatch(
            status=CommitmentStatus.COMPLETE,
            contract_date=event.completed_date,
            upload_ids=[upload_id],
        )
        try:
            await self._procore.patch_commitment(metadata, patch, access_token=access_token)
        except ProcoreApiError as exc:
            return PipelineOutcome(
                PipelineOutcomeKind.STEP_FAILED, str(exc), step="patch", upload_id=upload_id
            )

        logger.info("Updated Procore commitment", extra=log_extra)
        return PipelineOutcome(PipelineOutcomeKind.COMPLETED, upload_id=upload_id)

    async def process_terminal(
        self, event: WebhookEvent, *, status: str, access_token: str
    ) -> PipelineOutcome:
        """Record a rejected or cancelled workflow on the commitment."""
        try:
            metadata = event.metadata()
        except MalformedWebhookPayload as exc:
            return PipelineOutcome(PipelineOutcomeKind.MALFORMED_PAYLOAD, str(exc))

        patch = CommitmentPatch(status=status, contract_date=event.completed_date)
        try:
            await self._procore.patch_commitment(metadata, patch, access_token=access_token)
        except ProcoreApiError as exc:
            return PipelineOutcome(PipelineOutcomeKind.STEP_FAILED, str(exc), step="patch")

        logger.info(
            "Marked Procore commitment %s",
            status,
            extra={"doc_id": event.doc_id, "commitment_id": metadata.commitment_id},
        )
        return PipelineOutcome(PipelineOutcomeKind.COMPLETED)


__all__ = ["DocumentCompletionPipeline", "signed_document_name"]
