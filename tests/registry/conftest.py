"""Fixtures for registry tests."""

from datetime import UTC, datetime, timedelta
from itertools import count

import pytest


@pytest.fixture
def clock(monkeypatch):
    """Make every registry timestamp one second later than the previous one.

    The store keeps millisecond precision, so entities created back to back
    would otherwise tie on their dates.
    """
    start = datetime(2024, 1, 1, tzinfo=UTC)
    ticks = count()

    def _now():
        return start + timedelta(seconds=next(ticks))

    monkeypatch.setattr("device_spine.registry.logic.utc_now", _now)
    monkeypatch.setattr("device_spine.registry.assignments.utc_now", _now)
    return start
