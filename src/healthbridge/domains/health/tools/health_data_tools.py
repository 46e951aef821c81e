"""MCP tools for reading and writing personal health data.

Every tool goes through one ``HealthService`` and never needs to know
which platform backs it. Tools return JSON strings.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from healthbridge.domains.health.domain_logic.dashboard import (
    DEFAULT_EXERCISE_END_HOUR,
    DEFAULT_EXERCISE_START_HOUR,
    summarize_day,
)
from healthbridge.domains.health.domain_logic.models import (
    METRIC_VARIANTS,
    ActivityType,
    HealthPermission,
    HealthTimeRange,
    PermissionType,
    get_variant,
    local_now,
)

if TYPE_CHECKING:
    from healthbridge.core.config.settings import Settings
    from healthbridge.domains.health.connectors import HealthService

logger = logging.getLogger(__name__)

_ACCESS: dict[str, PermissionType] = {
    "read": PermissionType.READ,
    "write": PermissionType.WRITE,
    "read_write": PermissionType.READ_WRITE,
}


def _error(message: str, **extra: Any) -> str:
    return json.dumps({"status": "error", "message": message, **extra})


def _parse_time(value: str) -> datetime:
    # Naive values are local time; HealthTimeRange.from_datetime applies that rule.
    return datetime.fromisoformat(value)


def register_health_data_tools(
    mcp: FastMCP,
    service: HealthService,
    settings: Settings,
) -> None:
    """Register health data tools on the MCP server."""

    @mcp.tool
    async def request_health_permissions(
        metrics: list[str],
        access: str = "read",
        include_full_history: bool | None = None,
    ) -> str:
        """Ask the user for access to one or more health metrics.

        Only permissions not already granted are requested, in a single
        system prompt.

        Args:
            metrics: Metric names, e.g. ["steps", "heart_rate"].
            access: "read", "write" or "read_write".
            include_full_history: Also request history beyond the default
                retention window (Android only).
        """
        permission_type = _ACCESS.get(access)
        if permission_type is None:
            return _error(f"Unknown access {access!r}", valid=sorted(_ACCESS))
        try:
            permissions = [
                HealthPermission(get_variant(m).data_type, permission_type) for m in metrics
            ]
        except ValueError as exc:
            return _error(str(exc))

        if include_full_history is None:
            include_full_history = settings.request_full_history
        result = await service.request_permissions(permissions, include_full_history)
        return json.dumps({"platform": service.platform, **result.to_dict()})

    @mcp.tool
    async def get_health_data(metric: str, start: str, end: str) -> str:
        """Read records of one metric inside a time window, newest first.

        Args:
            metric: One of steps, weight, height, active_calories_burned,
                heart_rate, workout.
            start: ISO 8601 start time. Without an offset it is local time.
            end: ISO 8601 end time. Without an offset it is local time.
        """
        try:
            variant = get_variant(metric)
            time_range = HealthTimeRange.from_datetime(_parse_time(start), _parse_time(end))
        except ValueError as exc:
            return _error(str(exc))

        start_clock = time.monotonic()
        records = await service.get_health_data(variant, time_range)
        elapsed_ms = (time.monotonic() - start_clock) * 1000
        logger.info("get_health_data(%s) returned %d records", metric, len(records))
        return json.dumps({
            "metric": metric,
            "platform": service.platform,
            "start": time_range.start_time.isoformat(),
            "end": time_range.end_time.isoformat(),
            "count": len(records),
            "records": [r.to_dict() for r in records],
            "duration_ms": round(elapsed_ms, 1),
        })

    @mcp.tool
    async def write_health_data(metric: str, record: dict) -> str:
        """Write one record to the device's health store.

        Args:
            metric: Metric name, e.g. "weight".
            record: Field values, e.g. {"timestamp": "2025-01-01T08:00:00",
                "value": 72.4}. Interval metrics need start_time and end_time.
        """
        try:
            variant = get_variant(metric)
            canonical = variant.from_dict(record)
        except (TypeError, ValueError) as exc:
            return _error(f"Invalid {metric} record: {exc}")

        written = await service.write_health_data(canonical)
        return json.dumps({
            "status": "written" if written else "failed",
            "metric": metric,
            "platform": service.platform,
        })

    @mcp.tool
    async def start_workout_session(activity_type: str) -> str:
        """Start recording a workout.

        Args:
            activity_type: e.g. "running", "cycling", "traditional_strength_training".
        """
        try:
            activity = ActivityType(activity_type)
        except ValueError:
            return _error(
                f"Unknown activity type {activity_type!r}",
                valid=[a.value for a in ActivityType],
            )
        started = await service.start_workout_session(activity)
        return json.dumps({
            "status": "started" if started else "rejected",
            "activity_type": activity.value,
            "active": service.is_workout_session_active(),
        })

    @mcp.tool
    async def end_workout_session() -> str:
        """Stop the current workout and save it to the health store."""
        workout = await service.end_workout_session()
        if workout is None:
            return json.dumps({"status": "not_saved", "workout": None})
        return json.dumps({"status": "saved", "workout": workout.to_dict()})

    @mcp.tool
    def workout_session_status() -> str:
        """Report whether a workout session is currently being recorded."""
        return json.dumps({
            "active": service.is_workout_session_active(),
            "platform": service.platform,
        })

    @mcp.tool
    async def health_dashboard(
        day: str | None = None,
        exercise_start_hour: int = DEFAULT_EXERCISE_START_HOUR,
        exercise_end_hour: int = DEFAULT_EXERCISE_END_HOUR,
    ) -> str:
        """Summarize a day: steps, weight, active calories, workouts and
        heart rate during an exercise window.

        Args:
            day: ISO date (YYYY-MM-DD); defaults to today.
            exercise_start_hour: Local hour the exercise window opens.
            exercise_end_hour: Local hour the exercise window closes.
        """
        if not 0 <= exercise_start_hour <= exercise_end_hour <= 24:
            return _error("Exercise window hours must satisfy 0 <= start <= end <= 24")
        try:
            target = date.fromisoformat(day) if day else local_now().date()
        except ValueError as exc:
            return _error(str(exc))

        summary = await summarize_day(
            service,
            target,
            exercise_start_hour=exercise_start_hour,
            exercise_end_hour=exercise_end_hour,
        )
        return json.dumps({"platform": service.platform, **summary.to_dict()})

    logger.debug("Registered health data tools for metrics: %s", ", ".join(METRIC_VARIANTS))
