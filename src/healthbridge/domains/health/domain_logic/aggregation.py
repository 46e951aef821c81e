"""Pure aggregation helpers over decoded metric records.

Nothing here touches a health store; every function takes already decoded
records and returns a value.
"""

from __future__ import annotations

import dataclasses
import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from healthbridge.domains.health.domain_logic.models import (
    ActiveCaloriesBurned,
    HealthTimeRange,
    HeartRate,
    Steps,
    Weight,
    Workout,
)


@dataclass(frozen=True)
class HeartRateSummary:
    """Count and avg/min/max BPM over a set of samples.

    All three statistics are None when there are no samples.
    """

    count: int = 0
    average: float | None = None
    minimum: float | None = None
    maximum: float | None = None

    def to_dict(self) -> dict[str, float | int | None]:
        return {
            "count": self.count,
            "average_bpm": round(self.average, 1) if self.average is not None else None,
            "min_bpm": self.minimum,
            "max_bpm": self.maximum,
        }


def total_steps(steps: Iterable[Steps]) -> int:
    return sum(s.count for s in steps)


def total_calories(calories: Iterable[ActiveCaloriesBurned]) -> float:
    return sum((c.energy for c in calories), 0.0)


def current_weight(weights: Sequence[Weight]) -> float | None:
    """Value of the most recent weight record, or None without records."""
    if not weights:
        return None
    latest = max(weights, key=lambda w: w.timestamp)
    return latest.value


def summarize_heart_rate(samples: Iterable[HeartRate]) -> HeartRateSummary:
    values = [s.beats_per_minute for s in samples]
    if not values:
        return HeartRateSummary()
    return HeartRateSummary(
        count=len(values),
        average=statistics.fmean(values),
        minimum=min(values),
        maximum=max(values),
    )


def heart_rate_in_window(
    samples: Iterable[HeartRate], window: HealthTimeRange
) -> HeartRateSummary:
    """Summarize only the samples whose timestamp falls inside ``window``."""
    return summarize_heart_rate(s for s in samples if window.contains(s.timestamp))


def with_heart_rate(workout: Workout, samples: Iterable[HeartRate]) -> Workout:
    """Copy of ``workout`` with avg/min/max heart rate derived from ``samples``.

    An empty sample set leaves the three fields unset rather than zero.
    """
    summary = summarize_heart_rate(samples)
    if summary.count == 0:
        return workout
    return dataclasses.replace(
        workout,
        average_heart_rate=summary.average,
        min_heart_rate=summary.minimum,
        max_heart_rate=summary.maximum,
    )
