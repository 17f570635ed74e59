"""
Pydantic models for Procore commitments and the webhook metadata pointing at them.
"""

from datetime import date
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CommitmentMetadata(BaseModel):
    """Identifies the commitment a signing workflow was started for."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    project_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("projectId", "ProjectId", "project_id")
    )
    commitment_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("commitmentId", "CommitmentId", "commitment_id"),
    )
    company_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("companyId", "CompanyId", "company_id")
    )


class CommitmentStatus:
    """Status values written back to Procore commitments."""

    COMPLETE = "complete"
    TERMINATED = "Terminated"
    VOID = "Void"


class CommitmentPatch(BaseModel):
    """Body sent to Procore's commitment contract patch endpoint."""

    status: str
    contract_date: date
    upload_ids: List[str] = Field(default_factory=list)

    def to_payload(self) -> dict:
        payload = self.model_dump(mode="json")
        if not self.upload_ids:
            payload.pop("upload_ids")
        return payload


class ProcoreContext(BaseModel):
    """Procore embedding context sent by the front-end with a send request."""

    company_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    object_id: str = Field(..., min_length=1, description="Commitment identifier.")
    view: str | None = None

    model_config = ConfigDict(coerce_numbers_to_str=True)


__all__ = [
    "CommitmentMetadata",
    "CommitmentPatch",
    "CommitmentStatus",
    "ProcoreContext",
]
