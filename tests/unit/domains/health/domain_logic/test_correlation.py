"""Tests for workout / heart-rate correlation."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from healthbridge.domains.health.domain_logic.correlation import (
    correlate_all,
    correlate_heart_rate,
)
from healthbridge.domains.health.domain_logic.models import (
    ActivityType,
    HealthTimeRange,
    HeartRate,
    Workout,
)

UTC = timezone.utc
START = datetime(2025, 3, 14, 14, tzinfo=UTC)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _workout(start=START, hours=3) -> Workout:
    return Workout(
        id=f"w-{start.hour}",
        timestamp=start,
        activity_type=ActivityType.CYCLING,
        start_time=start,
        end_time=start + timedelta(hours=hours),
    )


def test_query_is_scoped_to_workout_window():
    windows: list[HealthTimeRange] = []

    async def query(window):
        windows.append(window)
        return [HeartRate(timestamp=window.start_time, beats_per_minute=120.0)]

    workout = _run(correlate_heart_rate(_workout(), query))
    assert windows == [HealthTimeRange(START, START + timedelta(hours=3))]
    assert workout.average_heart_rate == 120.0


def test_failed_query_keeps_workout_without_heart_rate():
    async def query(window):
        raise RuntimeError("sub-query failed")

    workout = _run(correlate_heart_rate(_workout(), query))
    assert workout.id == "w-14"
    assert workout.average_heart_rate is None


def test_cancellation_propagates():
    async def query(window):
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        _run(correlate_heart_rate(_workout(), query))


def test_correlate_all_preserves_order():
    async def query(window):
        return [HeartRate(timestamp=window.start_time, beats_per_minute=float(window.start_time.hour))]

    workouts = [_workout(START), _workout(START - timedelta(hours=5), hours=1)]
    result = _run(correlate_all(workouts, query))
    assert [w.id for w in result] == ["w-14", "w-9"]
    assert [w.max_heart_rate for w in result] == [14.0, 9.0]
