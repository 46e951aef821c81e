"""Android Health Connect native shapes and client interface.

These mirror the Health Connect record classes closely enough for the
codec to target. The client itself is an external collaborator that is
injected at startup (see ``HealthConnectClient``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable

# HealthConnectClient.getSdkStatus() values
SDK_UNAVAILABLE = 1
SDK_UNAVAILABLE_PROVIDER_UPDATE_REQUIRED = 2
SDK_AVAILABLE = 3

MIN_ANDROID_API_LEVEL = 26
PROVIDER_PACKAGE_NAME = "com.google.android.apps.healthdata"
DEFAULT_PAGE_SIZE = 1000


def to_instant(value: datetime) -> datetime:
    """UTC instant with millisecond precision, as Health Connect stores it."""
    utc = value.astimezone(timezone.utc)
    return utc.replace(microsecond=(utc.microsecond // 1000) * 1000)


def from_instant(value: datetime) -> datetime:
    """Aware UTC datetime from a native instant; naive instants are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def zone_offset_of(value: datetime) -> timezone:
    """Fixed zone offset a record was written in."""
    return timezone(value.astimezone().utcoffset() or timedelta(0))


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

class MassUnit(Enum):
    GRAMS = 1.0
    KILOGRAMS = 1000.0
    POUNDS = 453.59237


class LengthUnit(Enum):
    METERS = 1.0
    CENTIMETERS = 0.01
    INCHES = 0.0254


class EnergyUnit(Enum):
    KILOCALORIES = 1.0
    KILOJOULES = 1 / 4.184


class _Quantity:
    """A value stored in a base unit with ``in_unit`` conversion."""

    _base_unit: Enum
    _symbol: str = ""

    def __init__(self, base_value: float) -> None:
        self._value = float(base_value)

    def in_unit(self, unit: Enum) -> float:
        if type(unit) is not type(self._base_unit):
            raise TypeError(f"{type(self).__name__} cannot be expressed in {unit!r}")
        return self._value * self._base_unit.value / unit.value

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other._value == self._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))

    def __repr__(self) -> str:
        return f"{self._value} {self._symbol}"


class Mass(_Quantity):
    _base_unit = MassUnit.KILOGRAMS
    _symbol = "kg"

    @classmethod
    def kilograms(cls, value: float) -> Mass:
        return cls(value)

    @classmethod
    def grams(cls, value: float) -> Mass:
        return cls(value / 1000.0)

    @classmethod
    def pounds(cls, value: float) -> Mass:
        return cls(value * MassUnit.POUNDS.value / 1000.0)

    @property
    def in_kilograms(self) -> float:
        return self._value


class Length(_Quantity):
    _base_unit = LengthUnit.METERS
    _symbol = "m"

    @classmethod
    def meters(cls, value: float) -> Length:
        return cls(value)

    @classmethod
    def inches(cls, value: float) -> Length:
        return cls(value * LengthUnit.INCHES.value)

    @property
    def in_meters(self) -> float:
        return self._value


class Energy(_Quantity):
    _base_unit = EnergyUnit.KILOCALORIES
    _symbol = "kcal"

    @classmethod
    def kilocalories(cls, value: float) -> Energy:
        return cls(value)

    @classmethod
    def kilojoules(cls, value: float) -> Energy:
        return cls(value / 4.184)

    @property
    def in_kilocalories(self) -> float:
        return self._value


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class DataOrigin:
    package_name: str = ""


@dataclass
class Metadata:
    id: str = ""
    data_origin: DataOrigin = field(default_factory=DataOrigin)


@dataclass
class StepsRecord:
    start_time: datetime
    end_time: datetime
    count: int
    metadata: Metadata = field(default_factory=Metadata)
    start_zone_offset: timezone | None = None
    end_zone_offset: timezone | None = None


@dataclass
class WeightRecord:
    time: datetime
    weight: Any  # Mass, or whatever shape the SDK version returns
    metadata: Metadata = field(default_factory=Metadata)
    zone_offset: timezone | None = None


@dataclass
class HeightRecord:
    time: datetime
    height: Any  # Length
    metadata: Metadata = field(default_factory=Metadata)
    zone_offset: timezone | None = None


@dataclass
class ActiveCaloriesBurnedRecord:
    start_time: datetime
    end_time: datetime
    energy: Any  # Energy
    metadata: Metadata = field(default_factory=Metadata)
    start_zone_offset: timezone | None = None
    end_zone_offset: timezone | None = None


@dataclass
class HeartRateSample:
    time: datetime
    beats_per_minute: int


@dataclass
class HeartRateRecord:
    start_time: datetime
    end_time: datetime
    samples: list[HeartRateSample]
    metadata: Metadata = field(default_factory=Metadata)
    start_zone_offset: timezone | None = None
    end_zone_offset: timezone | None = None


@dataclass
class ExerciseSessionRecord:
    start_time: datetime
    end_time: datetime
    exercise_type: int
    title: str | None = None
    notes: str | None = None
    metadata: Metadata = field(default_factory=Metadata)
    start_zone_offset: timezone | None = None
    end_zone_offset: timezone | None = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeRangeFilter:
    start_time: datetime
    end_time: datetime

    @classmethod
    def between(cls, start: datetime, end: datetime) -> TimeRangeFilter:
        return cls(to_instant(start), to_instant(end))


@dataclass(frozen=True)
class ReadRecordsRequest:
    record_type: type
    time_range_filter: TimeRangeFilter
    data_origin_filter: frozenset[str] = frozenset()
    ascending_order: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    page_token: str | None = None


@dataclass
class ReadRecordsResponse:
    records: list[Any]
    page_token: str | None = None


@runtime_checkable
class HealthConnectClient(Protocol):
    """The slice of the Health Connect client this package relies on."""

    @property
    def api_level(self) -> int:
        """Android API level of the device."""
        ...

    def get_sdk_status(self) -> int:
        ...

    def open_provider_update(self, package_name: str) -> None:
        """Send the user to the store page that updates the provider app."""
        ...

    async def get_granted_permissions(self) -> set[str] | None:
        ...

    async def request_permissions(self, permissions: list[str]) -> set[str] | None:
        """Show one system prompt; returns the newly granted set (None if dismissed)."""
        ...

    async def read_records(self, request: ReadRecordsRequest) -> ReadRecordsResponse | None:
        ...

    async def insert_records(self, records: list[Any]) -> list[str]:
        """Insert records and return their store-assigned ids."""
        ...
