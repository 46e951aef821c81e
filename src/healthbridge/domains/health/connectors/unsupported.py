"""Fallback HealthService for hosts without a health store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from healthbridge.domains.health.domain_logic.models import (
    ActivityType,
    HealthMetricRecord,
    HealthPermission,
    HealthTimeRange,
    PermissionResult,
    RequestPermissionError,
    Workout,
)

R = TypeVar("R", bound=HealthMetricRecord)


class UnsupportedHealthService:
    """Answers every call with an empty, false or no-result value. Never raises."""

    @property
    def is_supported(self) -> bool:
        return False

    @property
    def platform(self) -> str:
        return "unsupported"

    async def request_permissions(
        self,
        permissions: Sequence[HealthPermission],
        include_full_history: bool = False,
    ) -> PermissionResult:
        return PermissionResult(error=RequestPermissionError.NOT_SUPPORTED)

    async def request_permission(
        self,
        permission: HealthPermission,
        include_full_history: bool = False,
    ) -> PermissionResult:
        return await self.request_permissions([permission], include_full_history)

    async def get_health_data(self, variant: type[R], time_range: HealthTimeRange) -> list[R]:
        return []

    async def write_health_data(self, record: HealthMetricRecord) -> bool:
        return False

    async def start_workout_session(self, activity_type: ActivityType) -> bool:
        return False

    async def end_workout_session(self) -> Workout | None:
        return None

    def is_workout_session_active(self) -> bool:
        return False
