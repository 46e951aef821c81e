"""Health Connect permission identifiers and negotiation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from healthbridge.domains.health.connectors.health_connect.records import (
    MIN_ANDROID_API_LEVEL,
    PROVIDER_PACKAGE_NAME,
    SDK_UNAVAILABLE,
    SDK_UNAVAILABLE_PROVIDER_UPDATE_REQUIRED,
    HealthConnectClient,
)
from healthbridge.domains.health.domain_logic.errors import (
    HealthPlatformError,
    PermissionDeniedError,
    PermissionFetchError,
    PlatformGrantError,
    UnsupportedPlatformError,
)
from healthbridge.domains.health.domain_logic.models import (
    HealthDataType,
    HealthPermission,
    PermissionResult,
    SdkCheckError,
)

logger = logging.getLogger(__name__)

_PREFIX = "android.permission.health."

READ_HEALTH_DATA_HISTORY = _PREFIX + "READ_HEALTH_DATA_HISTORY"

_RECORD_PERMISSION_NAMES: dict[HealthDataType, str] = {
    HealthDataType.STEPS: "STEPS",
    HealthDataType.WEIGHT: "WEIGHT",
    HealthDataType.HEIGHT: "HEIGHT",
    HealthDataType.ACTIVE_CALORIES_BURNED: "ACTIVE_CALORIES_BURNED",
    HealthDataType.HEART_RATE: "HEART_RATE",
    HealthDataType.EXERCISE_SESSION: "EXERCISE",
}


def read_permission(data_type: HealthDataType) -> str:
    return f"{_PREFIX}READ_{_RECORD_PERMISSION_NAMES[data_type]}"


def write_permission(data_type: HealthDataType) -> str:
    return f"{_PREFIX}WRITE_{_RECORD_PERMISSION_NAMES[data_type]}"


def permission_identifiers(
    permissions: Iterable[HealthPermission],
    include_full_history: bool = False,
) -> list[str]:
    """Expand canonical permissions into ordered, de-duplicated identifiers.

    A read-write permission expands to both its read and write identifier.
    """
    identifiers: list[str] = []
    for permission in permissions:
        if permission.can_read:
            identifiers.append(read_permission(permission.data_type))
        if permission.can_write:
            identifiers.append(write_permission(permission.data_type))
    if include_full_history:
        identifiers.append(READ_HEALTH_DATA_HISTORY)
    return list(dict.fromkeys(identifiers))


def check_sdk_availability(
    client: HealthConnectClient, *, open_update: bool = True
) -> SdkCheckError | None:
    """Return why Health Connect cannot be used here, or None if it can.

    When the provider app needs an update and ``open_update`` is set, the
    user is sent to its store page.
    """
    try:
        status = client.get_sdk_status()
        if status == SDK_UNAVAILABLE:
            return SdkCheckError.SDK_UNAVAILABLE
        if status == SDK_UNAVAILABLE_PROVIDER_UPDATE_REQUIRED:
            if open_update:
                logger.info("Health Connect provider needs an update; opening store page")
                client.open_provider_update(PROVIDER_PACKAGE_NAME)
            return SdkCheckError.PROVIDER_UPDATE_REQUIRED
        if client.api_level < MIN_ANDROID_API_LEVEL:
            return SdkCheckError.ANDROID_VERSION_NOT_SUPPORTED
    except Exception:
        logger.warning("Health Connect SDK status check failed", exc_info=True)
        return SdkCheckError.SDK_UNAVAILABLE
    return None


class HealthConnectPermissionNegotiator:
    """Requests exactly the missing Health Connect permissions, in one prompt."""

    def __init__(self, client: HealthConnectClient) -> None:
        self._client = client

    async def negotiate(
        self,
        permissions: Sequence[HealthPermission],
        include_full_history: bool = False,
    ) -> None:
        """Ensure every requested permission is granted.

        Raises:
            UnsupportedPlatformError: the SDK is unusable on this device.
            PermissionFetchError: the granted set could not be read.
            PlatformGrantError: the system prompt failed.
            PermissionDeniedError: permissions are still missing afterwards.
        """
        sdk_error = check_sdk_availability(self._client)
        if sdk_error is not None:
            raise UnsupportedPlatformError(f"Health Connect unavailable: {sdk_error.value}")

        requested = permission_identifiers(permissions, include_full_history)

        try:
            granted = await self._client.get_granted_permissions()
        except Exception as exc:
            raise PermissionFetchError("Could not read granted Health Connect permissions") from exc
        if granted is None:
            raise PermissionFetchError("Health Connect returned no granted permission set")

        missing = [p for p in requested if p not in granted]
        if not missing:
            logger.debug("All %d permissions already granted", len(requested))
            return

        logger.info("Requesting %d missing Health Connect permissions", len(missing))
        try:
            newly_granted = await self._client.request_permissions(missing)
        except Exception as exc:
            raise PlatformGrantError(exc) from exc

        newly_granted = newly_granted or set()
        still_missing = [p for p in missing if p not in newly_granted]
        if still_missing:
            raise PermissionDeniedError(still_missing)

    async def request(
        self,
        permissions: Sequence[HealthPermission],
        include_full_history: bool = False,
    ) -> PermissionResult:
        """``negotiate`` with failures converted into a ``PermissionResult``."""
        try:
            await self.negotiate(permissions, include_full_history)
        except HealthPlatformError as exc:
            logger.info("Permission request failed: %s", exc)
            return PermissionResult.from_exception(exc)
        except Exception as exc:
            logger.exception("Unexpected error requesting Health Connect permissions")
            return PermissionResult.from_exception(PlatformGrantError(exc))
        return PermissionResult.success()
