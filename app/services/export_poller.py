"""
Drives Procore's asynchronous commitment PDF export to completion.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus

from app.clients.procore import ProcoreApiError, ProcoreClient
from app.models.oauth import Platform
from app.services.token_refresh import TokenRefreshCoordinator
from app.utils.http import PollBudgetExhausted, RetryConfig, Sleep, poll_until_ready

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Base class for PDF export failures surfaced to synchronous callers."""


class ExportStartFailedError(ExportError):
    """The export job could not be started."""


class ExportFailedError(ExportError):
    """The export endpoint answered with a terminal, non-retryable status."""


class ExportTimedOutError(ExportError):
    """The export was still pending when the retry budget ran out."""


class ExportPoller:
    """Start a commitment PDF export and poll it until the PDF is ready."""

    def __init__(
        self,
        procore_client: ProcoreClient,
        coordinator: TokenRefreshCoordinator,
        *,
        retry_config: RetryConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._procore = procore_client
        self._coordinator = coordinator
        self._retry = retry_config or RetryConfig()
        self._sleep = sleep

    async def export_pdf(self, company_id: str, project_id: str, commitment_id: str) -> bytes:
        export_url = self._procore.export_url(company_id, project_id, commitment_id)
        log_extra = {"commitment_id": commitment_id, "project_id": project_id}

        try:
            access_token = await self._coordinator.ensure_valid(Platform.PROCORE)
            started = await self._procore.start_export(
                export_url, access_token=access_token, company_id=company_id
            )
        except ProcoreApiError as exc:
            raise ExportStartFailedError(f"Could not start PDF export: {exc}") from exc
        logger.info("Export start returned %d", started.status_code, extra=log_extra)
        if not started.is_success:
            raise ExportStartFailedError(
                f"PDF export start returned {started.status_code}"
            )

        async def _fetch():
            token = await self._coordinator.ensure_valid(Platform.PROCORE)
            return await self._procore.fetch_export(
                export_url, access_token=token, company_id=company_id
            )

        try:
            response = await poll_until_ready(
                _fetch, retry_config=self._retry, sleep=self._sleep
            )
        except PollBudgetExhausted as exc:
            logger.error("PDF export timed out after %d attempts", exc.attempts, extra=log_extra)
            raise ExportTimedOutError("PDF export timed out") from exc
        except ProcoreApiError as exc:
            raise ExportFailedError(f"PDF export failed: {exc}") from exc

        if response.status_code != HTTPStatus.OK:
            logger.error(
                "PDF export failed with %d: %s",
                response.status_code,
                response.text,
                extra=log_extra,
            )
            raise ExportFailedError(f"PDF export failed with status {response.status_code}")

        pdf_bytes = response.content
        logger.info("PDF exported successfully, size: %d", len(pdf_bytes), extra=log_extra)
        return pdf_bytes


__all__ = [
    "ExportError",
    "ExportFailedError",
    "ExportPoller",
    "ExportStartFailedError",
    "ExportTimedOutError",
]
