"""Shared fixtures."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

NEW_YORK = ZoneInfo("America/New_York")


class FixedClock:
    """Clock pinned to one instant. Implements the Clock port."""

    def __init__(self, local: datetime):
        self.tz = local.tzinfo
        self._local = local

    def now_local(self) -> datetime:
        return self._local

    def now_utc(self) -> datetime:
        return self._local.astimezone(timezone.utc)


@pytest.fixture
def tz():
    return NEW_YORK


@pytest.fixture
def make_clock(tz):
    """Factory for clocks at a local wall time in New York."""

    def _make(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> FixedClock:
        return FixedClock(datetime(year, month, day, hour, minute, tzinfo=tz))

    return _make


@pytest.fixture
def clock(make_clock):
    """Wednesday 2025-01-15 10:30 in New York (EST, UTC-5)."""
    return make_clock(2025, 1, 15, 10, 30)


@pytest.fixture
def now_local(clock):
    return clock.now_local()


@pytest.fixture
def now_utc(clock):
    return clock.now_utc()
