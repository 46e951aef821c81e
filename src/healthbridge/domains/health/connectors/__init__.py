"""Health platform connectors: one capability interface, one backend per host."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar, runtime_checkable

from healthbridge.domains.health.domain_logic.models import (
    ActivityType,
    HealthMetricRecord,
    HealthPermission,
    HealthTimeRange,
    PermissionResult,
    Workout,
)

R = TypeVar("R", bound=HealthMetricRecord)


@runtime_checkable
class HealthService(Protocol):
    """Platform-neutral access to personal health data.

    Callers never branch on the host platform: Health Connect, HealthKit
    and the unsupported fallback all answer the same calls. No method lets
    a native-layer exception escape; reads degrade to empty lists, writes
    and session calls to False/None.
    """

    @property
    def is_supported(self) -> bool:
        """Whether a usable health store exists. No side effects."""
        ...

    @property
    def platform(self) -> str:
        """Label for the backend: 'health_connect', 'healthkit' or 'unsupported'."""
        ...

    async def request_permissions(
        self,
        permissions: Sequence[HealthPermission],
        include_full_history: bool = False,
    ) -> PermissionResult:
        """Request exactly the permissions not already granted, in one prompt."""
        ...

    async def request_permission(
        self,
        permission: HealthPermission,
        include_full_history: bool = False,
    ) -> PermissionResult:
        ...

    async def get_health_data(self, variant: type[R], time_range: HealthTimeRange) -> list[R]:
        """Records of ``variant`` inside ``time_range``, newest first."""
        ...

    async def write_health_data(self, record: HealthMetricRecord) -> bool:
        ...

    async def start_workout_session(self, activity_type: ActivityType) -> bool:
        ...

    async def end_workout_session(self) -> Workout | None:
        ...

    def is_workout_session_active(self) -> bool:
        ...
