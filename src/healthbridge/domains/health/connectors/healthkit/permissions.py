"""HealthKit permission negotiation.

HealthKit never reveals whether read access was granted: a denied read
simply looks like an empty store. Only write (share) authorization can be
checked, so a successful negotiation means every write type is authorized
and the read prompt has been shown, not that reads will return data.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from healthbridge.domains.health.connectors.healthkit.codec import sample_type_for
from healthbridge.domains.health.connectors.healthkit.objects import (
    HealthKitStore,
    HKAuthorizationRequestStatus,
    HKAuthorizationStatus,
    SampleType,
    type_name,
)
from healthbridge.domains.health.domain_logic.errors import (
    HealthPlatformError,
    PermissionDeniedError,
    PermissionFetchError,
    PlatformGrantError,
    UnsupportedPlatformError,
)
from healthbridge.domains.health.domain_logic.models import (
    HealthPermission,
    PermissionResult,
)

logger = logging.getLogger(__name__)


def split_sample_types(
    permissions: Sequence[HealthPermission],
) -> tuple[list[SampleType], list[SampleType]]:
    """Ordered, de-duplicated (write_types, read_types)."""
    write_types: list[SampleType] = []
    read_types: list[SampleType] = []
    for permission in permissions:
        sample_type = sample_type_for(permission.data_type)
        if permission.can_write and sample_type not in write_types:
            write_types.append(sample_type)
        if permission.can_read and sample_type not in read_types:
            read_types.append(sample_type)
    return write_types, read_types


class HealthKitPermissionNegotiator:
    """Shows the HealthKit authorization sheet only when it would ask something new."""

    def __init__(self, store: HealthKitStore) -> None:
        self._store = store

    def _unauthorized_writes(self, write_types: list[SampleType]) -> list[str]:
        return [
            type_name(t) for t in write_types
            if self._store.authorization_status(t) != HKAuthorizationStatus.SHARING_AUTHORIZED
        ]

    async def negotiate(self, permissions: Sequence[HealthPermission]) -> None:
        """Ensure write access for every requested write type.

        Raises:
            UnsupportedPlatformError: HealthKit is not available on this device.
            PermissionFetchError: the current authorization could not be read.
            PlatformGrantError: the authorization sheet failed.
            PermissionDeniedError: write access is still missing afterwards.
        """
        if not self._store.is_health_data_available():
            raise UnsupportedPlatformError("HealthKit is not available on this device")

        write_types, read_types = split_sample_types(permissions)

        try:
            request_status = await self._store.request_status_for_authorization(
                set(write_types), set(read_types)
            )
            missing_writes = self._unauthorized_writes(write_types)
        except Exception as exc:
            raise PermissionFetchError("Could not read HealthKit authorization status") from exc

        if request_status == HKAuthorizationRequestStatus.UNNECESSARY:
            # Every type has been asked about before; the sheet would not appear.
            if missing_writes:
                raise PermissionDeniedError(missing_writes)
            logger.debug("HealthKit authorization already determined; no prompt")
            return

        logger.info(
            "Requesting HealthKit authorization (%d write, %d read types)",
            len(write_types), len(read_types),
        )
        try:
            shown = await self._store.request_authorization(set(write_types), set(read_types))
        except Exception as exc:
            raise PlatformGrantError(exc) from exc
        if not shown:
            raise PlatformGrantError("authorization sheet was not presented")

        still_missing = self._unauthorized_writes(write_types)
        if still_missing:
            raise PermissionDeniedError(still_missing)

    async def request(self, permissions: Sequence[HealthPermission]) -> PermissionResult:
        """``negotiate`` with failures converted into a ``PermissionResult``."""
        try:
            await self.negotiate(permissions)
        except HealthPlatformError as exc:
            logger.info("Permission request failed: %s", exc)
            return PermissionResult.from_exception(exc)
        except Exception as exc:
            logger.exception("Unexpected error requesting HealthKit permissions")
            return PermissionResult.from_exception(PlatformGrantError(exc))
        return PermissionResult.success()
