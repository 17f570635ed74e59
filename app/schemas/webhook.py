"""
Pydantic models for SigniFlow webhook deliveries.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.schemas.procore import CommitmentMetadata
from app.utils.dates import parse_event_date


class MalformedWebhookPayload(Exception):
    """Raised when a webhook's additional data cannot be decoded into metadata."""


class WebhookEvent(BaseModel):
    """A signing-workflow notification; immutable once accepted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    event_type: str = Field(
        ..., validation_alias=AliasChoices("eventType", "EventType", "event_type")
    )
    status: str = Field(
        "", validation_alias=AliasChoices("status", "Status")
    )
    doc_id: str = Field(
        ..., validation_alias=AliasChoices("docId", "DocID", "DocId", "doc_id")
    )
    document_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("documentUrl", "DocumentUrl", "document_url")
    )
    document_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("documentName", "DocumentName", "document_name")
    )
    completed_date: date = Field(
        ..., validation_alias=AliasChoices("completedDate", "CompletedDate", "completed_date")
    )
    additional_data: Optional[Any] = Field(
        None,
        validation_alias=AliasChoices("additionalData", "AdditionalData", "additional_data"),
        description="JSON-encoded commitment metadata, as a string or an object.",
    )

    @field_validator("completed_date", mode="before")
    @classmethod
    def _parse_completed_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            try:
                return parse_event_date(value)
            except ValueError as exc:
                raise ValueError(f"Unrecognised completion date: {value!r}") from exc
        return value

    def metadata(self) -> CommitmentMetadata:
        """Decode ``additional_data`` into commitment metadata."""
        raw = self.additional_data
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raise MalformedWebhookPayload("Webhook event carries no additional data.")
        try:
            if isinstance(raw, str):
                raw = json.loads(raw)
            return CommitmentMetadata.model_validate(raw)
        except (ValueError, ValidationError) as exc:
            raise MalformedWebhookPayload(
                f"Additional data is not valid commitment metadata: {exc}"
            ) from exc


class WebhookAck(BaseModel):
    """Response returned to the webhook sender."""

    status: str = "received"


__all__ = ["MalformedWebhookPayload", "WebhookAck", "WebhookEvent"]
