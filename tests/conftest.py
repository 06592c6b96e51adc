"""Shared test fixtures."""

import pytest

from src.api.app import limiter


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """slowapi keeps hit counters on the module-level limiter; clear them per test."""
    limiter.reset()
    yield
