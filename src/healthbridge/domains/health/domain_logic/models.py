"""Canonical health data model shared by every platform backend.

Records are platform-neutral: weight is always kilograms, height is always
centimetres and energy is always kilocalories. Conversion from native units
happens inside each platform codec.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, Flag
from typing import Any, ClassVar, TypeVar

from healthbridge.domains.health.domain_logic.errors import (
    HealthPlatformError,
    PermissionDeniedError,
    PermissionFetchError,
    PlatformGrantError,
    UnsupportedPlatformError,
)


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------

def ensure_aware(value: datetime) -> datetime:
    """Attach the local timezone to a naive datetime; aware values pass through."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.astimezone()
    return value


def local_now() -> datetime:
    """Current instant in the host's local timezone."""
    return datetime.now().astimezone()


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(str(value)))


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class HealthDataType(str, Enum):
    """Data types a permission can be requested for."""

    STEPS = "steps"
    WEIGHT = "weight"
    HEIGHT = "height"
    ACTIVE_CALORIES_BURNED = "active_calories_burned"
    HEART_RATE = "heart_rate"
    EXERCISE_SESSION = "exercise_session"


class PermissionType(Flag):
    READ = 1
    WRITE = 2
    READ_WRITE = READ | WRITE


class ActivityType(str, Enum):
    """Closed set of workout kinds understood by every backend."""

    RUNNING = "running"
    CYCLING = "cycling"
    WALKING = "walking"
    SWIMMING = "swimming"
    HIKING = "hiking"
    YOGA = "yoga"
    FUNCTIONAL_STRENGTH_TRAINING = "functional_strength_training"
    TRADITIONAL_STRENGTH_TRAINING = "traditional_strength_training"
    ELLIPTICAL = "elliptical"
    ROWING = "rowing"
    PILATES = "pilates"
    DANCING = "dancing"
    SOCCER = "soccer"
    BASKETBALL = "basketball"
    BASEBALL = "baseball"
    TENNIS = "tennis"
    GOLF = "golf"
    BADMINTON = "badminton"
    TABLE_TENNIS = "table_tennis"
    VOLLEYBALL = "volleyball"
    CRICKET = "cricket"
    RUGBY = "rugby"
    AMERICAN_FOOTBALL = "american_football"
    SKIING = "skiing"
    SNOWBOARDING = "snowboarding"
    ICE_SKATING = "ice_skating"
    SURFING = "surfing"
    PADDLING = "paddling"
    SAILING = "sailing"
    MARTIAL_ARTS = "martial_arts"
    BOXING = "boxing"
    WRESTLING = "wrestling"
    CLIMBING = "climbing"
    CROSS_TRAINING = "cross_training"
    STAIR_CLIMBING = "stair_climbing"
    JUMP_ROPE = "jump_rope"
    OTHER = "other"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        """Human-readable name, used as the title of recorded sessions."""
        return self.value.replace("_", " ").title()


class RequestPermissionError(str, Enum):
    """Why a permission negotiation did not succeed."""

    NOT_SUPPORTED = "not_supported"
    PROBLEM_FETCHING_GRANTED = "problem_fetching_granted"
    MISSING_PERMISSIONS = "missing_permissions"
    GRANT_ERROR = "grant_error"


class SdkCheckError(str, Enum):
    """Why the Health Connect SDK cannot be used on this device."""

    SDK_UNAVAILABLE = "sdk_unavailable"
    PROVIDER_UPDATE_REQUIRED = "provider_update_required"
    ANDROID_VERSION_NOT_SUPPORTED = "android_version_not_supported"


# ---------------------------------------------------------------------------
# Time range
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HealthTimeRange:
    """A closed query window between two timezone-aware instants."""

    start_time: datetime
    end_time: datetime

    def __post_init__(self) -> None:
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError(
                "HealthTimeRange requires timezone-aware datetimes; "
                "use HealthTimeRange.from_datetime for naive values"
            )
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")

    @classmethod
    def from_datetime(cls, start: datetime, end: datetime) -> HealthTimeRange:
        """Build a range, treating naive datetimes as local time."""
        return cls(ensure_aware(start), ensure_aware(end))

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def start_local(self) -> datetime:
        return self.start_time.astimezone()

    @property
    def end_local(self) -> datetime:
        return self.end_time.astimezone()

    def contains(self, instant: datetime) -> bool:
        return self.start_time <= ensure_aware(instant) <= self.end_time


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HealthPermission:
    """Access of a given kind to a given data type."""

    data_type: HealthDataType
    permission_type: PermissionType = PermissionType.READ

    @property
    def can_read(self) -> bool:
        return bool(self.permission_type & PermissionType.READ)

    @property
    def can_write(self) -> bool:
        return bool(self.permission_type & PermissionType.WRITE)


@dataclass
class PermissionResult:
    """Outcome of a permission negotiation.

    ``error`` is None on success. ``denied_permissions`` lists the platform
    permission identifiers still missing when ``error`` is
    ``MISSING_PERMISSIONS``.
    """

    error: RequestPermissionError | None = None
    denied_permissions: list[str] = field(default_factory=list)
    exception: BaseException | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> PermissionResult:
        return cls()

    @classmethod
    def from_exception(cls, exc: BaseException) -> PermissionResult:
        """Translate a negotiation failure into a typed result."""
        if isinstance(exc, UnsupportedPlatformError):
            return cls(error=RequestPermissionError.NOT_SUPPORTED, exception=exc)
        if isinstance(exc, PermissionFetchError):
            return cls(error=RequestPermissionError.PROBLEM_FETCHING_GRANTED, exception=exc)
        if isinstance(exc, PermissionDeniedError):
            return cls(
                error=RequestPermissionError.MISSING_PERMISSIONS,
                denied_permissions=list(exc.denied),
                exception=exc,
            )
        if not isinstance(exc, PlatformGrantError):
            exc = PlatformGrantError(exc)
        return cls(error=RequestPermissionError.GRANT_ERROR, exception=exc)

    def raise_for_error(self) -> None:
        """Raise the typed error matching this result, if it failed."""
        if self.error is None:
            return
        if isinstance(self.exception, HealthPlatformError):
            raise self.exception
        if self.error is RequestPermissionError.NOT_SUPPORTED:
            raise UnsupportedPlatformError("Health data is not available on this platform")
        if self.error is RequestPermissionError.PROBLEM_FETCHING_GRANTED:
            raise PermissionFetchError("Could not fetch already granted permissions")
        if self.error is RequestPermissionError.MISSING_PERMISSIONS:
            raise PermissionDeniedError(self.denied_permissions)
        raise PlatformGrantError(self.exception)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "granted" if self.is_success else "error",
            "error": self.error.value if self.error else None,
            "denied_permissions": list(self.denied_permissions),
        }


# ---------------------------------------------------------------------------
# Metric records
# ---------------------------------------------------------------------------

R = TypeVar("R", bound="HealthMetricRecord")


@dataclass(kw_only=True)
class HealthMetricRecord:
    """Fields shared by every metric variant.

    ``id`` is assigned by the health store and stays empty until the record
    has been persisted. Naive datetimes are interpreted as local time.
    """

    metric_name: ClassVar[str] = ""
    data_type: ClassVar[HealthDataType]

    id: str = ""
    data_origin: str = ""
    timestamp: datetime

    def __post_init__(self) -> None:
        self.timestamp = ensure_aware(self.timestamp)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (datetimes as ISO 8601)."""
        result: dict[str, Any] = {"metric": self.metric_name}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls: type[R], data: dict[str, Any]) -> R:
        """Build a record from a ``to_dict``-style mapping.

        Unknown keys are ignored. Interval records default ``timestamp`` to
        their ``start_time``.
        """
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if not f.init or f.name not in data or data[f.name] is None:
                continue
            kwargs[f.name] = data[f.name]
        for key in ("timestamp", "start_time", "end_time"):
            if key in kwargs:
                kwargs[key] = _parse_datetime(kwargs[key])
        if "timestamp" not in kwargs and "start_time" in kwargs:
            kwargs["timestamp"] = kwargs["start_time"]
        if "activity_type" in kwargs:
            kwargs["activity_type"] = ActivityType(kwargs["activity_type"])
        return cls(**kwargs)


@dataclass(kw_only=True)
class IntervalRecord(HealthMetricRecord):
    """A record that spans ``[start_time, end_time]``."""

    start_time: datetime
    end_time: datetime

    def __post_init__(self) -> None:
        super().__post_init__()
        self.start_time = ensure_aware(self.start_time)
        self.end_time = ensure_aware(self.end_time)
        if self.end_time < self.start_time:
            raise ValueError(f"{type(self).__name__}: end_time is before start_time")
        if not self.start_time <= self.timestamp <= self.end_time:
            raise ValueError(
                f"{type(self).__name__}: timestamp must lie within [start_time, end_time]"
            )

    @property
    def time_range(self) -> HealthTimeRange:
        return HealthTimeRange(self.start_time, self.end_time)


@dataclass(kw_only=True)
class Steps(IntervalRecord):
    metric_name: ClassVar[str] = "steps"
    data_type: ClassVar[HealthDataType] = HealthDataType.STEPS

    count: int

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.count < 0:
            raise ValueError("Steps.count must be non-negative")


@dataclass(kw_only=True)
class Weight(HealthMetricRecord):
    metric_name: ClassVar[str] = "weight"
    data_type: ClassVar[HealthDataType] = HealthDataType.WEIGHT

    value: float
    unit: str = field(default="kg", init=False)


@dataclass(kw_only=True)
class Height(HealthMetricRecord):
    metric_name: ClassVar[str] = "height"
    data_type: ClassVar[HealthDataType] = HealthDataType.HEIGHT

    value: float
    unit: str = field(default="cm", init=False)


@dataclass(kw_only=True)
class ActiveCaloriesBurned(IntervalRecord):
    metric_name: ClassVar[str] = "active_calories_burned"
    data_type: ClassVar[HealthDataType] = HealthDataType.ACTIVE_CALORIES_BURNED

    energy: float
    unit: str = field(default="kcal", init=False)


@dataclass(kw_only=True)
class HeartRate(HealthMetricRecord):
    metric_name: ClassVar[str] = "heart_rate"
    data_type: ClassVar[HealthDataType] = HealthDataType.HEART_RATE

    beats_per_minute: float
    unit: str = field(default="BPM", init=False)


@dataclass(kw_only=True)
class Workout(IntervalRecord):
    """A completed exercise session.

    The heart-rate fields are not stored by either platform; they are
    derived from heart-rate samples recorded during the workout window.
    """

    metric_name: ClassVar[str] = "workout"
    data_type: ClassVar[HealthDataType] = HealthDataType.EXERCISE_SESSION

    activity_type: ActivityType
    title: str | None = None
    energy_burned: float | None = None   # kcal
    distance: float | None = None        # metres
    average_heart_rate: float | None = None
    min_heart_rate: float | None = None
    max_heart_rate: float | None = None


METRIC_VARIANTS: dict[str, type[HealthMetricRecord]] = {
    variant.metric_name: variant
    for variant in (Steps, Weight, Height, ActiveCaloriesBurned, HeartRate, Workout)
}


def get_variant(metric_name: str) -> type[HealthMetricRecord]:
    """Look up a metric variant by its name (e.g. ``'steps'``)."""
    try:
        return METRIC_VARIANTS[metric_name]
    except KeyError:
        raise ValueError(
            f"Unknown metric {metric_name!r}; expected one of {sorted(METRIC_VARIANTS)}"
        ) from None


def required_permission(
    variant: type[HealthMetricRecord],
    permission_type: PermissionType = PermissionType.READ,
) -> HealthPermission:
    """Permission needed to read (or write) records of ``variant``."""
    return HealthPermission(variant.data_type, permission_type)
