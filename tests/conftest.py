"""Pytest configuration shared across the suite."""

import pytest

from app.core.config import get_settings


@pytest.fixture
def anyio_backend() -> str:
    """Run AnyIO-marked endpoint tests on asyncio, matching the worker's event loop."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so env changes made by one test do not leak into the next."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
