"""Selects the HealthService implementation for the host, once, at startup."""

from __future__ import annotations

import logging
import sys
from enum import Enum

from healthbridge.core.config.settings import Settings, get_settings
from healthbridge.domains.health.connectors import HealthService
from healthbridge.domains.health.connectors.health_connect.records import HealthConnectClient
from healthbridge.domains.health.connectors.health_connect.service import HealthConnectService
from healthbridge.domains.health.connectors.healthkit.objects import HealthKitStore
from healthbridge.domains.health.connectors.healthkit.service import HealthKitService
from healthbridge.domains.health.connectors.unsupported import UnsupportedHealthService

logger = logging.getLogger(__name__)


class HostPlatform(str, Enum):
    ANDROID = "android"
    IOS = "ios"
    UNSUPPORTED = "unsupported"


def detect_host_platform() -> HostPlatform:
    """Identify the host from the interpreter's platform tag."""
    if sys.platform == "android" or hasattr(sys, "getandroidapilevel"):
        return HostPlatform.ANDROID
    if sys.platform == "ios":
        return HostPlatform.IOS
    return HostPlatform.UNSUPPORTED


def resolve_platform(settings: Settings) -> HostPlatform:
    if settings.health_platform == "auto":
        return detect_host_platform()
    return HostPlatform(settings.health_platform)


def create_health_service(
    settings: Settings | None = None,
    *,
    health_connect_client: HealthConnectClient | None = None,
    healthkit_store: HealthKitStore | None = None,
) -> HealthService:
    """Build the HealthService for this host.

    The native client (Health Connect) or store (HealthKit) is supplied by
    the embedding application. Without one, or on any other host, the
    unsupported implementation is returned.
    """
    settings = settings or get_settings()
    platform = resolve_platform(settings)

    if platform is HostPlatform.ANDROID:
        if health_connect_client is not None:
            logger.info("Using Health Connect backend")
            return HealthConnectService(
                health_connect_client,
                page_size=settings.read_page_size,
                max_pages=settings.read_max_pages,
            )
        logger.warning("Android host but no Health Connect client was provided")
    elif platform is HostPlatform.IOS:
        if healthkit_store is not None:
            logger.info("Using HealthKit backend")
            return HealthKitService(healthkit_store, data_origin=settings.app_data_origin)
        logger.warning("iOS host but no HealthKit store was provided")

    logger.info("Health data is not supported on this host; using unsupported backend")
    return UnsupportedHealthService()
