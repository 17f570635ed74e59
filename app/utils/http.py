"""HTTP utilities providing fixed-interval polling semantics."""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Awaitable, Callable, Collection

import httpx

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RetryConfig:
    def __init__(self, *, attempts: int = 7, backoff_seconds: float = 2.0) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds


class PollBudgetExhausted(Exception):
    """Raised when every attempt came back with a pending status."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Still pending after {attempts} attempts")
        self.attempts = attempts


async def poll_until_ready(
    fetch: Callable[[], Awaitable[httpx.Response]],
    *,
    retry_config: RetryConfig | None = None,
    pending_statuses: Collection[int] = (HTTPStatus.ACCEPTED, HTTPStatus.NO_CONTENT),
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """Call ``fetch`` until it returns a non-pending response.

    The first non-pending response is returned as-is, whatever its status, so
    callers decide what counts as success. Pending responses consume one
    attempt and wait a fixed ``backoff_seconds`` before the next call.
    Cancellation of the calling task interrupts the wait immediately.
    """
    config = retry_config or RetryConfig()
    remaining = config.attempts

    while remaining > 0:
        response = await fetch()
        if response.status_code not in pending_statuses:
            return response
        remaining -= 1
        logger.info("Resource not ready yet, retries left: %d", remaining)
        if remaining > 0:
            await sleep(config.backoff_seconds)

    raise PollBudgetExhausted(config.attempts)


__all__ = ["PollBudgetExhausted", "RetryConfig", "poll_until_ready"]
