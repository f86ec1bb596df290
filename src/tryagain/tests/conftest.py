"""Shared fixtures: silence logging and isolate settings per test."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tryagain.foundation.config import clear_settings_cache
from tryagain.runtime.observability import MemoryRenderer, set_renderer


@pytest.fixture(autouse=True)
def captured_logs() -> Iterator[MemoryRenderer]:
    """Route log output to memory for the duration of a test."""
    renderer = MemoryRenderer()
    set_renderer(renderer, level="DEBUG")
    clear_settings_cache()
    yield renderer
    set_renderer(None, level="INFO")
    clear_settings_cache()
