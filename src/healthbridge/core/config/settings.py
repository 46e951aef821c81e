"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HealthBridge server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback so personal health data is not served to the LAN.
    # Opt into `0.0.0.0` explicitly when you intend remote access.
    hb_host: str = "127.0.0.1"
    hb_port: int = 8001
    hb_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is true
    # (there is no auth layer).
    hb_allow_insecure_bind: bool = False

    # Platform selection; "auto" goes by the host's identity
    health_platform: Literal["auto", "android", "ios", "unsupported"] = "auto"

    # DataOrigin stamped on workouts recorded through live sessions
    app_data_origin: str = "HealthBridge"

    # Range reads
    read_page_size: int = 1000
    read_max_pages: int = 1

    # Default for the full-history opt-in when tools request permissions
    request_full_history: bool = False


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
