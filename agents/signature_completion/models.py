"""
Data models shared across the signing-completion package.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PipelineOutcomeKind(str, Enum):
    """How processing of a single webhook event ended."""

    COMPLETED = "completed"
    IGNORED = "ignored"
    AUTH_FAILED = "auth_failed"
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_DOCUMENT = "missing_document"
    STEP_FAILED = "step_failed"


@dataclass(frozen=True, slots=True)
class PipelineOutcome:
    """Explicit result handed back to the worker loop."""

    kind: PipelineOutcomeKind
    detail: str = ""
    step: Optional[str] = None
    upload_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.kind in (PipelineOutcomeKind.COMPLETED, PipelineOutcomeKind.IGNORED)


__all__ = ["PipelineOutcome", "PipelineOutcomeKind"]
