"""Error taxonomy for the health platform layer.

Permission and session failures reach callers as typed results
(``PermissionResult``, ``False``/``None``); these exceptions are what the
negotiators and codecs raise internally before a public entry point
converts them.
"""

from __future__ import annotations

from collections.abc import Iterable


class HealthPlatformError(Exception):
    """Base exception for health platform errors."""


class UnsupportedPlatformError(HealthPlatformError):
    """The host has no usable health store."""


class PermissionFetchError(HealthPlatformError):
    """The set of already granted permissions could not be read."""


class PermissionDeniedError(HealthPlatformError):
    """The user did not grant every requested permission."""

    def __init__(self, denied: Iterable[str]) -> None:
        self.denied = list(denied)
        super().__init__(f"Missing permissions: {', '.join(self.denied) or 'none'}")


class PlatformGrantError(HealthPlatformError):
    """The platform failed while presenting or resolving the permission prompt."""

    def __init__(self, cause: object = None) -> None:
        self.cause = cause
        super().__init__(f"Permission grant failed: {cause}" if cause else "Permission grant failed")


class RecordDecodeError(HealthPlatformError):
    """A single native record could not be converted; the batch continues."""


class RecordEncodeError(HealthPlatformError):
    """A canonical record has no native representation on this platform."""


class WriteError(HealthPlatformError):
    """The health store rejected a write."""
