"""HealthService backed by Android Health Connect."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from healthbridge.domains.health.connectors.health_connect import codec
from healthbridge.domains.health.connectors.health_connect.permissions import (
    HealthConnectPermissionNegotiator,
    check_sdk_availability,
)
from healthbridge.domains.health.connectors.health_connect.records import (
    DEFAULT_PAGE_SIZE,
    HealthConnectClient,
    ReadRecordsRequest,
    TimeRangeFilter,
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
    required_permission,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=HealthMetricRecord)


class HealthConnectService:
    """Reads and writes canonical records through a Health Connect client.

    Permissions are negotiated on every read and write. Reads never raise:
    any failure yields an empty list. Health Connect offers no live session
    API, so the workout session calls always report failure.

    Usage::

        service = HealthConnectService(client)
        steps = await service.get_health_data(Steps, HealthTimeRange.from_datetime(start, end))
    """

    def __init__(
        self,
        client: HealthConnectClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = 1,
    ) -> None:
        self._client = client
        self._negotiator = HealthConnectPermissionNegotiator(client)
        self._page_size = page_size
        self._max_pages = max(1, max_pages)

    @property
    def is_supported(self) -> bool:
        return check_sdk_availability(self._client, open_update=False) is None

    @property
    def platform(self) -> str:
        return "health_connect"

    # -- permissions --------------------------------------------------------

    async def request_permissions(
        self,
        permissions: Sequence[HealthPermission],
        include_full_history: bool = False,
    ) -> PermissionResult:
        return await self._negotiator.request(permissions, include_full_history)

    async def request_permission(
        self,
        permission: HealthPermission,
        include_full_history: bool = False,
    ) -> PermissionResult:
        return await self.request_permissions([permission], include_full_history)

    # -- reads --------------------------------------------------------------

    async def get_health_data(self, variant: type[R], time_range: HealthTimeRange) -> list[R]:
        try:
            await self._negotiator.negotiate([required_permission(variant)])
            natives = await self._read_native(variant, time_range)
            records = self._decode_all(natives, variant)
            if variant is Workout:
                records = await correlate_all(records, self._query_heart_rate)
            return records
        except Exception:
            logger.exception("Failed to read %s from Health Connect", variant.metric_name)
            return []

    async def _read_native(self, variant: type[HealthMetricRecord], time_range: HealthTimeRange) -> list[Any]:
        record_type = codec.NATIVE_RECORD_TYPES[variant]
        time_filter = TimeRangeFilter.between(time_range.start_time, time_range.end_time)
        logger.debug(
            "Reading %s between %s and %s",
            record_type.__name__,
            time_filter.start_time.isoformat(),
            time_filter.end_time.isoformat(),
        )

        natives: list[Any] = []
        page_token: str | None = None
        for _ in range(self._max_pages):
            request = ReadRecordsRequest(
                record_type=record_type,
                time_range_filter=time_filter,
                ascending_order=False,
                page_size=self._page_size,
                page_token=page_token,
            )
            response = await self._client.read_records(request)
            if response is None:
                break
            natives.extend(response.records or [])
            page_token = response.page_token
            if not page_token:
                break
        return natives

    @staticmethod
    def _decode_all(natives: list[Any], variant: type[R]) -> list[R]:
        records: list[R] = []
        for native in natives:
            try:
                record = codec.decode(native, variant)
            except RecordDecodeError as exc:
                logger.warning("Skipping unreadable record: %s", exc)
                continue
            if record is not None:
                records.append(record)
        return records

    async def _query_heart_rate(self, window: HealthTimeRange) -> list[HeartRate]:
        # Nested query for workout correlation; read permission for heart
        # rate is not renegotiated here.
        natives = await self._read_native(HeartRate, window)
        return self._decode_all(natives, HeartRate)

    # -- writes -------------------------------------------------------------

    async def write_health_data(self, record: HealthMetricRecord) -> bool:
        try:
            await self._negotiator.negotiate(
                [required_permission(type(record), PermissionType.WRITE)]
            )
            native = codec.encode(record)
            ids = await self._client.insert_records([native])
            if not ids:
                raise WriteError(f"Health Connect stored no {record.metric_name} record")
        except HealthPlatformError as exc:
            logger.warning("Could not write %s: %s", record.metric_name, exc)
            return False
        except Exception:
            logger.exception("Failed to write %s to Health Connect", record.metric_name)
            return False
        logger.info("Wrote %s record %s", record.metric_name, ids[0])
        return True

    # -- workout sessions ---------------------------------------------------

    async def start_workout_session(self, activity_type: ActivityType) -> bool:
        logger.info("Live workout sessions are not available on Health Connect")
        return False

    async def end_workout_session(self) -> Workout | None:
        return None

    def is_workout_session_active(self) -> bool:
        return False
