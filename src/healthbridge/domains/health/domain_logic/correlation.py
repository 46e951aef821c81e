"""Workout and heart-rate correlation.

Neither health store keeps heart-rate statistics on a workout. They are
derived by querying heart-rate samples inside each workout's own window.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from healthbridge.domains.health.domain_logic.aggregation import with_heart_rate
from healthbridge.domains.health.domain_logic.models import (
    HealthTimeRange,
    HeartRate,
    Workout,
)

logger = logging.getLogger(__name__)

HeartRateQuery = Callable[[HealthTimeRange], Awaitable[list[HeartRate]]]


async def correlate_heart_rate(workout: Workout, query: HeartRateQuery) -> Workout:
    """Attach avg/min/max heart rate from samples inside the workout window.

    A failing sub-query leaves the workout without heart-rate fields instead
    of dropping it.
    """
    window = workout.time_range
    logger.debug(
        "Querying heart rate for workout %s to %s",
        window.start_time.isoformat(), window.end_time.isoformat(),
    )
    try:
        samples = await query(window)
    except Exception:
        logger.warning("Heart-rate query failed for workout %s", workout.id, exc_info=True)
        return workout

    logger.debug("Found %d heart-rate samples for workout %s", len(samples), workout.id)
    return with_heart_rate(workout, samples)


async def correlate_all(workouts: Iterable[Workout], query: HeartRateQuery) -> list[Workout]:
    """Correlate each workout in turn, preserving order."""
    return [await correlate_heart_rate(w, query) for w in workouts]
