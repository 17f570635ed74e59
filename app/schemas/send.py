"""Schemas for the commitment send endpoint."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.procore import ProcoreContext


class SendRequest(BaseModel):
    """Form data plus the Procore context the front-end was opened from."""

    form: Dict[str, Any]
    context: ProcoreContext


class SendResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    pdf_size: int = Field(..., alias="pdfSize")


__all__ = ["SendRequest", "SendResponse"]
