"""SigniFlow signing-completion sub-agent package.

This module drains queued webhook events and writes signed documents back to
Procore.
"""

from __future__ import annotations

from typing import Any


def __getattr__(name: str) -> Any:
    if name == "WebhookWorker":
        from .worker import WebhookWorker as loaded_worker

        return loaded_worker
    if name == "DocumentCompletionPipeline":
        from .pipeline import DocumentCompletionPipeline as loaded_pipeline

        return loaded_pipeline
    raise AttributeError(name)


__all__ = ["DocumentCompletionPipeline", "WebhookWorker"]
