"""In-process webhook queue used to decouple webhook intake from processing."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Protocol, Union

from app.schemas.webhook import WebhookEvent


class QueueClosedError(Exception):
    """Raised when enqueuing onto a queue that has been shut down."""


class WebhookQueue(Protocol):
    """Ordered channel between the webhook endpoint and its single consumer."""

    async def enqueue(self, event: WebhookEvent) -> None: ...

    def dequeue(self) -> AsyncIterator[WebhookEvent]: ...

    def close(self) -> None: ...


class _Closed:
    pass


_CLOSED = _Closed()


class InMemoryWebhookQueue:
    """Unbounded FIFO queue backed by ``asyncio.Queue``.

    Events are lost on restart. ``dequeue`` yields events in enqueue order and
    finishes once the queue is closed and everything enqueued before the close
    has been delivered.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Union[WebhookEvent, _Closed]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def enqueue(self, event: WebhookEvent) -> None:
        if self._closed:
            raise QueueClosedError("Webhook queue is shut down.")
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def dequeue(self) -> AsyncIterator[WebhookEvent]:
        while True:
            item = await self._queue.get()
            if isinstance(item, _Closed):
                return
            yield item


__all__ = ["InMemoryWebhookQueue", "QueueClosedError", "WebhookQueue"]
