"""Date parsing helpers for the formats SigniFlow emits."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

_MICROSOFT_DATE = re.compile(r"^/?\\?/?Date\((?P<millis>-?\d+)(?P<offset>[+-]\d{4})?\)\\?/?$")


def parse_microsoft_date(value: str) -> datetime:
    """Parse ``/Date(1768049260000+0000)/`` into an aware UTC datetime."""
    match = _MICROSOFT_DATE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid Microsoft JSON date: {value!r}")
    millis = int(match.group("millis"))
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def parse_event_date(value: str) -> date:
    """Parse an ISO-8601 or Microsoft JSON date string into a calendar date."""
    text = value.strip()
    if "Date(" in text:
        return parse_microsoft_date(text).date()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    return datetime.fromisoformat(text).date()


__all__ = ["parse_event_date", "parse_microsoft_date"]
