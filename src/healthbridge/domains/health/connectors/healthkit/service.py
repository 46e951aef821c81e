"""HealthService backed by iOS HealthKit."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from healthbridge.domains.health.connectors.healthkit import codec
from healthbridge.domains.health.connectors.healthkit.objects import HealthKitStore
from healthbridge.domains.health.connectors.healthkit.permissions import (
    HealthKitPermissionNegotiator,
)
from healthbridge.domains.health.domain_logic.correlation import correlate_all
from healthbridge.domains.health.domain_logic.errors import (
    HealthPlatformError,
    RecordDecodeError,
    WriteError,
)
from healthbridge.domains.health.domain_logic.models import (
    ActivityType,
    HealthMetricRecord,
    HealthPermission,
    HealthTimeRange,
    HeartRate,
    PermissionResult,
    PermissionType,
    Workout,
    local_now,
    required_permission,
)
from healthbridge.domains.health.domain_logic.workout_session import (
    WorkoutSessionStateMachine,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=HealthMetricRecord)


class HealthKitService:
    """Reads and writes canonical records through a HealthKit store.

    Live workout sessions are tracked in-process and written as an
    ``HKWorkout`` when they end.

    Usage::

        service = HealthKitService(store, data_origin="HealthBridge")
        await service.start_workout_session(ActivityType.RUNNING)
        workout = await service.end_workout_session()
    """

    def __init__(
        self,
        store: HealthKitStore,
        *,
        data_origin: str = "HealthBridge",
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._store = store
        self._negotiator = HealthKitPermissionNegotiator(store)
        self._sessions = WorkoutSessionStateMachine(
            self.write_health_data, data_origin=data_origin, clock=clock
        )

    @property
    def is_supported(self) -> bool:
        try:
            return bool(self._store.is_health_data_available())
        except Exception:
            logger.warning("HealthKit availability check failed", exc_info=True)
            return False

    @property
    def platform(self) -> str:
        return "healthkit"

    @property
    def sessions(self) -> WorkoutSessionStateMachine:
        return self._sessions

    # -- permissions --------------------------------------------------------

    async def request_permissions(
        self,
        permissions: Sequence[HealthPermission],
        include_full_history: bool = False,
    ) -> PermissionResult:
        # HealthKit grants full history with ordinary read access.
        return await self._negotiator.request(permissions)

    async def request_permission(
        self,
        permission: HealthPermission,
        include_full_history: bool = False,
    ) -> PermissionResult:
        return await self.request_permissions([permission], include_full_history)

    # -- reads --------------------------------------------------------------

    async def get_health_data(self, variant: type[R], time_range: HealthTimeRange) -> list[R]:
        if not self.is_supported:
            return []
        try:
            await self._negotiator.negotiate([required_permission(variant)])
            records = await self._query(variant, time_range)
            if variant is Workout:
                records = await correlate_all(records, self._query_heart_rate)
            return records
        except Exception:
            logger.exception("Failed to read %s from HealthKit", variant.metric_name)
            return []

    async def _query(self, variant: type[R], time_range: HealthTimeRange) -> list[R]:
        sample_type = codec.sample_type_for(variant.data_type)
        logger.debug(
            "Querying %s from %s to %s (local %s to %s)",
            variant.metric_name,
            time_range.start_time.isoformat(),
            time_range.end_time.isoformat(),
            time_range.start_local.isoformat(),
            time_range.end_local.isoformat(),
        )
        natives = await self._store.execute_sample_query(
            sample_type, time_range.start_time, time_range.end_time, limit=0, ascending=False
        )
        records = self._decode_all(natives or [], variant)
        logger.debug("Found %d %s records", len(records), variant.metric_name)
        return records

    @staticmethod
    def _decode_all(natives: list[Any], variant: type[R]) -> list[R]:
        records: list[R] = []
        for native in natives:
            try:
                record = codec.decode(native, variant)
            except RecordDecodeError as exc:
                logger.warning("Skipping unreadable sample: %s", exc)
                continue
            if record is not None:
                records.append(record)
        return records

    async def _query_heart_rate(self, window: HealthTimeRange) -> list[HeartRate]:
        return await self._query(HeartRate, window)

    # -- writes -------------------------------------------------------------

    async def write_health_data(self, record: HealthMetricRecord) -> bool:
        if not self.is_supported:
            return False
        try:
            await self._negotiator.negotiate(
                [required_permission(type(record), PermissionType.WRITE)]
            )
            native = codec.encode(record)
            if not await self._store.save_object(native):
                raise WriteError(f"HealthKit did not save the {record.metric_name} sample")
        except HealthPlatformError as exc:
            logger.warning("Could not write %s: %s", record.metric_name, exc)
            return False
        except Exception:
            logger.exception("Failed to write %s to HealthKit", record.metric_name)
            return False
        logger.info("Wrote %s record to HealthKit", record.metric_name)
        return True

    # -- workout sessions ---------------------------------------------------

    async def start_workout_session(self, activity_type: ActivityType) -> bool:
        if not self.is_supported:
            return False
        return await self._sessions.start(activity_type)

    async def end_workout_session(self) -> Workout | None:
        return await self._sessions.end()

    def is_workout_session_active(self) -> bool:
        return self._sessions.is_active()
