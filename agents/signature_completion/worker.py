"""Background worker that drains the webhook queue one event at a time."""

from __future__ import annotations

import logging
from typing import Optional

from agents.signature_completion.models import PipelineOutcome, PipelineOutcomeKind
from agents.signature_completion.pipeline import DocumentCompletionPipeline
from app.clients.local_queue import WebhookQueue
from app.models.oauth import Platform
from app.schemas.procore import CommitmentStatus
from app.schemas.webhook import WebhookEvent
from app.services.token_refresh import (
    ReauthRequiredError,
    RefreshFailedError,
    TokenRefreshCoordinator,
)

logger = logging.getLogger(__name__)

COMPLETED_EVENT_TYPE = "DocumentCompleted"
COMPLETED_STATUS = "Completed"
TERMINAL_EVENT_STATUSES = {
    "DocumentRejected": CommitmentStatus.TERMINATED,
    "Rejected": CommitmentStatus.TERMINATED,
    "DocumentCancelled": CommitmentStatus.VOID,
    "Cancelled": CommitmentStatus.VOID,
}


def is_completed(event: WebhookEvent) -> bool:
    return event.event_type == COMPLETED_EVENT_TYPE or event.status == COMPLETED_STATUS


class WebhookWorker:
    """Consume queued SigniFlow events and run the completion pipeline.

    Events are handled strictly one at a time in arrival order. A failure on
    one event is logged and never stops the loop.
    """

    def __init__(
        self,
        queue: WebhookQueue,
        coordinator: TokenRefreshCoordinator,
        pipeline: DocumentCompletionPipeline,
        *,
        handle_terminal_events: bool = False,
    ) -> None:
        self._queue = queue
        self._coordinator = coordinator
        self._pipeline = pipeline
        self._handle_terminal_events = handle_terminal_events

    async def run_forever(self) -> None:
        """Process events until the queue is closed and drained."""
        async for event in self._queue.dequeue():
            try:
                await self.process(event)
            except Exception:
                logger.exception(
                    "Unhandled error processing webhook event",
                    extra={"doc_id": event.doc_id, "event_type": event.event_type},
                )
        logger.info("Webhook worker stopped")

    async def process(self, event: WebhookEvent) -> PipelineOutcome:
        completed = is_completed(event)
        terminal_status = None if completed else self._terminal_status(event)
        if not completed and terminal_status is None:
            outcome = PipelineOutcome(
                PipelineOutcomeKind.IGNORED, f"Unhandled event type {event.event_type!r}"
            )
            self._log_outcome(event, outcome)
            return outcome

        try:
            access_token = await self._coordinator.ensure_valid(Platform.PROCORE)
        except (ReauthRequiredError, RefreshFailedError) as exc:
            outcome = PipelineOutcome(PipelineOutcomeKind.AUTH_FAILED, str(exc))
            self._log_outcome(event, outcome)
            return outcome

        if terminal_status is not None:
            outcome = await self._pipeline.process_terminal(
                event, status=terminal_status, access_token=access_token
            )
        else:
            outcome = await self._pipeline.process_completed(event, access_token=access_token)
        self._log_outcome(event, outcome)
        return outcome

    def _terminal_status(self, event: WebhookEvent) -> Optional[str]:
        if not self._handle_terminal_events:
            return None
        return TERMINAL_EVENT_STATUSES.get(event.event_type) or TERMINAL_EVENT_STATUSES.get(
            event.status
        )

    def _log_outcome(self, event: WebhookEvent, outcome: PipelineOutcome) -> None:
        extra = {"doc_id": event.doc_id, "event_type": event.event_type}
        if outcome.kind is PipelineOutcomeKind.COMPLETED:
            logger.info("Webhook event processed", extra=extra)
        elif outcome.kind is PipelineOutcomeKind.IGNORED:
            logger.info("Ignoring webhook event: %s", outcome.detail, extra=extra)
        elif outcome.kind is PipelineOutcomeKind.STEP_FAILED:
            logger.error("Step %s failed: %s", outcome.step, outcome.detail, extra=extra)
        else:
            logger.error("%s: %s", outcome.kind.value, outcome.detail, extra=extra)


__all__ = ["TERMINAL_EVENT_STATUSES", "WebhookWorker", "is_completed"]
