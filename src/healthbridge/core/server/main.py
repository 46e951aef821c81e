"""HealthBridge server entry point: ``python -m healthbridge.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from healthbridge.core.config.settings import get_settings
from healthbridge.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the HealthBridge MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.hb_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.hb_allow_insecure_bind and not _is_loopback_host(settings.hb_host):
        raise RuntimeError(
            "Refusing to bind HealthBridge to a non-loopback host without an auth layer. "
            "Set HB_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting HealthBridge server on %s:%d (platform setting: %s)",
        settings.hb_host,
        settings.hb_port,
        settings.health_platform,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.hb_host,
        port=settings.hb_port,
    )


if __name__ == "__main__":
    run()
