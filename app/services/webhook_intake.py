"""
Service helpers for accepting SigniFlow webhook deliveries.
"""

from __future__ import annotations

import logging

from app.clients.local_queue import WebhookQueue
from app.schemas.webhook import WebhookEvent

logger = logging.getLogger(__name__)


class WebhookIntakeService:
    """Hand validated webhook events to the background worker's queue."""

    def __init__(self, queue: WebhookQueue) -> None:
        self._queue = queue

    async def accept(self, event: WebhookEvent) -> None:
        """Enqueue the event without waiting for it to be processed.

        Duplicate deliveries of the same document are enqueued again; the
        queue does not deduplicate by ``doc_id``.
        """
        logger.info(
            "Received SigniFlow webhook",
            extra={"doc_id": event.doc_id, "event_type": event.event_type},
        )
        await self._queue.enqueue(event)


__all__ = ["WebhookIntakeService"]
