"""Shared pytest fixtures: fresh settings per test and common record types."""

from typing import List

import pytest

from etl_toolbox.config import get_settings
from etl_toolbox.mapping import RecordType
from etl_toolbox.reliability import CircuitBreaker
from tests.fixtures.records import SALE


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate every test from the developer's environment and .env file."""
    for name in ("ETL_DEBUG", "ETL_SKIP_BAD_ROWS", "ETL_DEFAULT_SHEET_NAME"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sale_type() -> RecordType:
    return SALE


@pytest.fixture
def recorded_sleeps() -> List[float]:
    return []


@pytest.fixture
def fast_breaker(recorded_sleeps) -> CircuitBreaker:
    """Breaker with small thresholds whose waits are recorded, not slept."""
    return CircuitBreaker(
        warning_threshold=2,
        close_threshold=4,
        failure_threshold=6,
        opened_wait_ms=0,
        half_opened_wait_ms=10,
        closed_wait_ms=100,
        sleep=recorded_sleeps.append,
        name="test",
    )
