"""Procore REST client wrapper."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from app.core.config import ProcoreSettings
from app.schemas.procore import CommitmentMetadata, CommitmentPatch

logger = logging.getLogger(__name__)

COMPANY_HEADER = "Procore-Company-Id"


class ProcoreApiError(Exception):
    """Raised when a Procore call fails at the transport or HTTP level."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProcoreClient:
    """Export commitment PDFs, upload files and patch commitments."""

    def __init__(self, settings: ProcoreSettings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client

    @property
    def _base(self) -> str:
        return self._settings.api_base.rstrip("/")

    @staticmethod
    def _headers(access_token: str, company_id: str | None = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {access_token}"}
        if company_id is not None:
            headers[COMPANY_HEADER] = company_id
        return headers

    def commitment_url(self, company_id: str, project_id: str, commitment_id: str) -> str:
        return (
            f"{self._base}/rest/v2.0/companies/{company_id}/projects/{project_id}"
            f"/commitment_contracts/{commitment_id}"
        )

    def export_url(self, company_id: str, project_id: str, commitment_id: str) -> str:
        return f"{self.commitment_url(company_id, project_id, commitment_id)}/pdf"

    async def start_export(
        self, export_url: str, *, access_token: str, company_id: str
    ) -> httpx.Response:
        """Ask Procore to begin rendering the commitment PDF."""
        return await self._send(
            "POST", export_url, headers=self._headers(access_token, company_id)
        )

    async def fetch_export(
        self, export_url: str, *, access_token: str, company_id: str
    ) -> httpx.Response:
        """Poll the export endpoint; status codes are interpreted by the caller."""
        return await self._send(
            "GET", export_url, headers=self._headers(access_token, company_id)
        )

    async def upload_document(
        self,
        *,
        access_token: str,
        company_id: str,
        project_id: str,
        file_name: str,
        content: bytes,
        content_type: str = "application/pdf",
    ) -> str:
        """Upload a file to the project's storage and return its upload uuid."""
        response = await self._send(
            "POST",
            f"{self._base}/rest/v1.1/projects/{project_id}/uploads",
            headers=self._headers(access_token, company_id),
            json={
                "response_filename": file_name,
                "response_content_type": content_type,
            },
        )
        self._raise_for_status(response, "create upload")
        try:
            upload: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise ProcoreApiError("Procore upload response is not valid JSON.") from exc
        if not isinstance(upload, dict):
            raise ProcoreApiError("Procore upload response is not a JSON object.")
        upload_uuid = upload.get("uuid")
        upload_url = upload.get("url")
        if not upload_uuid or not upload_url:
            raise ProcoreApiError("Procore upload response is missing uuid or url.")

        storage_response = await self._send(
            "POST",
            upload_url,
            data=upload.get("fields") or {},
            files={"file": (file_name, content, content_type)},
        )
        self._raise_for_status(storage_response, "upload file content")
        logger.info(
            "Uploaded %s (%d bytes) to Procore",
            file_name,
            len(content),
            extra={"project_id": project_id},
        )
        return upload_uuid

    async def patch_commitment(
        self,
        metadata: CommitmentMetadata,
        patch: CommitmentPatch,
        *,
        access_token: str,
    ) -> None:
        """Apply a status/date/attachment patch to a commitment contract.

        Any 2xx counts as applied; the response body is not read.
        """
        response = await self._send(
            "PATCH",
            self.commitment_url(metadata.company_id, metadata.project_id, metadata.commitment_id),
            headers=self._headers(access_token, metadata.company_id),
            json=patch.to_payload(),
        )
        self._raise_for_status(response, "patch commitment")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ProcoreApiError(f"Procore {method} {url} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        raise ProcoreApiError(
            f"Procore {action} returned {response.status_code}: {response.text}",
            status_code=response.status_code,
        )


__all__ = ["COMPANY_HEADER", "ProcoreApiError", "ProcoreClient"]
