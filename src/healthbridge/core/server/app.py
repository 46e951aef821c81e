"""HealthBridge MCP server application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from healthbridge.core.config.settings import get_settings
from healthbridge.domains.health.connectors import HealthService
from healthbridge.domains.health.connectors.dispatcher import create_health_service
from healthbridge.domains.health.tools.health_data_tools import register_health_data_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "HealthBridge"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    health_service_override: HealthService | None = None,
) -> FastMCP:
    """Create and configure the HealthBridge MCP server.

    The health service is chosen once here: the override when given,
    otherwise whatever backend the host platform supports.
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Platform-neutral access to personal health data from Android "
            "Health Connect or iOS HealthKit: permissions, time-windowed reads, "
            "writes and live workout sessions."
        ),
    )

    if health_service_override is not None:
        service = health_service_override
    else:
        service = create_health_service(settings)
    logger.info("Health service backend: %s", service.platform)

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "platform": service.platform,
            "health_data_supported": service.is_supported,
            "workout_session_active": service.is_workout_session_active(),
        }

    register_health_data_tools(server, service, settings)
    logger.info("Health data tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
