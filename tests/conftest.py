"""Pytest configuration and fixtures."""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

import pytest

from testopia_runner.config import get_settings
from testopia_runner.logging import configure_logging

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[StringIO, None, None]:
    """Send structured logs to a buffer so test output stays readable."""
    stream = StringIO()
    configure_logging(log_level="DEBUG", json_format=True, stream=stream)
    yield stream


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings so monkeypatched environment variables apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def console() -> StringIO:
    """Build console buffer."""
    return StringIO()
