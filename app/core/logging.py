"""
Logging utilities for the FastAPI application and the webhook worker.

Provides a consistent logging format and configuration.
"""

import logging
import sys

_CONTEXT_FIELDS = ("platform", "doc_id", "event_type", "commitment_id", "project_id")


class _ContextFormatter(logging.Formatter):
    """Append known ``extra`` context fields to the rendered message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in _CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if context:
            message = f"{message} [{' '.join(context)}]"
        return message


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        _ContextFormatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    # Signed document URLs carry credentials in their query strings.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
