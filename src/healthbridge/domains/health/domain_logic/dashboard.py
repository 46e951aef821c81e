"""Daily summary over a HealthService.

Fetches the day's records and reduces them with the pure helpers in
``aggregation``; nothing here talks to a platform directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any

from healthbridge.domains.health.domain_logic.aggregation import (
    HeartRateSummary,
    current_weight,
    heart_rate_in_window,
    total_calories,
    total_steps,
)
from healthbridge.domains.health.domain_logic.models import (
    ActiveCaloriesBurned,
    HealthTimeRange,
    HeartRate,
    Steps,
    Weight,
    Workout,
    local_now,
    required_permission,
)

if TYPE_CHECKING:
    from healthbridge.domains.health.connectors import HealthService

logger = logging.getLogger(__name__)

DEFAULT_EXERCISE_START_HOUR = 14
DEFAULT_EXERCISE_END_HOUR = 17

DASHBOARD_VARIANTS = (Steps, Weight, ActiveCaloriesBurned, HeartRate, Workout)


@dataclass
class DailySummary:
    day: date
    steps: int = 0
    weight_kg: float | None = None
    active_calories_kcal: float = 0.0
    exercise_window: HealthTimeRange | None = None
    heart_rate: HeartRateSummary = field(default_factory=HeartRateSummary)
    workouts: list[Workout] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        window = None
        if self.exercise_window is not None:
            window = {
                "start": self.exercise_window.start_time.isoformat(),
                "end": self.exercise_window.end_time.isoformat(),
            }
        return {
            "day": self.day.isoformat(),
            "steps": self.steps,
            "weight_kg": self.weight_kg,
            "active_calories_kcal": round(self.active_calories_kcal, 1),
            "exercise_window": window,
            "heart_rate": self.heart_rate.to_dict(),
            "workouts": [w.to_dict() for w in self.workouts],
        }


def day_range(day: date, now: datetime | None = None) -> HealthTimeRange:
    """Local midnight to now for today; the whole day otherwise."""
    now = now or local_now()
    start = datetime.combine(day, time.min)
    end = datetime.combine(day + timedelta(days=1), time.min) - timedelta(microseconds=1)
    range_ = HealthTimeRange.from_datetime(start, end)
    if range_.contains(now):
        return HealthTimeRange(range_.start_time, now)
    return range_


def hour_window(day: date, start_hour: int, end_hour: int) -> HealthTimeRange:
    """Local ``[start_hour:00, end_hour:00]`` on ``day``."""
    midnight = datetime.combine(day, time.min)
    return HealthTimeRange.from_datetime(
        midnight + timedelta(hours=start_hour), midnight + timedelta(hours=end_hour)
    )


async def summarize_day(
    service: HealthService,
    day: date,
    *,
    exercise_start_hour: int = DEFAULT_EXERCISE_START_HOUR,
    exercise_end_hour: int = DEFAULT_EXERCISE_END_HOUR,
    now: datetime | None = None,
) -> DailySummary:
    """Steps, weight, calories, exercise heart rate and workouts for ``day``."""
    today = day_range(day, now)
    exercise = hour_window(day, exercise_start_hour, exercise_end_hour)

    # One prompt for every metric; each read then finds its permission granted.
    result = await service.request_permissions(
        [required_permission(v) for v in DASHBOARD_VARIANTS]
    )
    if not result.is_success:
        logger.info("Dashboard permissions incomplete: %s", result.error)

    steps = await service.get_health_data(Steps, today)
    weights = await service.get_health_data(Weight, today)
    calories = await service.get_health_data(ActiveCaloriesBurned, today)
    heart_rates = await service.get_health_data(HeartRate, exercise)
    workouts = await service.get_health_data(Workout, today)
    logger.debug(
        "Dashboard for %s: %d steps records, %d weights, %d calorie records, "
        "%d heart-rate samples, %d workouts",
        day, len(steps), len(weights), len(calories), len(heart_rates), len(workouts),
    )

    return DailySummary(
        day=day,
        steps=total_steps(steps),
        weight_kg=current_weight(weights),
        active_calories_kcal=total_calories(calories),
        exercise_window=exercise,
        heart_rate=heart_rate_in_window(heart_rates, exercise),
        workouts=list(workouts),
    )
