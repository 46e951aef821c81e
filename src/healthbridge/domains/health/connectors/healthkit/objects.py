"""iOS HealthKit native shapes and store interface.

Only the parts of HealthKit the codec and services touch are modelled:
quantities with units, quantity samples, workouts, authorization states
and the ``HealthKitStore`` the host injects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Protocol, Union, runtime_checkable
from uuid import uuid4


class HKUnit(Enum):
    """Units with their factor to the dimension's base unit."""

    COUNT = ("count", "count", 1.0)
    COUNT_PER_MINUTE = ("count/min", "rate", 1.0)
    GRAM = ("g", "mass", 1.0)
    KILOGRAM = ("kg", "mass", 1000.0)
    POUND = ("lb", "mass", 453.59237)
    METER = ("m", "length", 1.0)
    CENTIMETER = ("cm", "length", 0.01)
    INCH = ("in", "length", 0.0254)
    KILOCALORIE = ("kcal", "energy", 1.0)
    KILOJOULE = ("kJ", "energy", 1 / 4.184)

    def __init__(self, symbol: str, dimension: str, factor: float) -> None:
        self.symbol = symbol
        self.dimension = dimension
        self.factor = factor


@dataclass(frozen=True)
class HKQuantity:
    unit: HKUnit
    value: float

    def double_value(self, unit: HKUnit) -> float:
        """This quantity expressed in ``unit``; the dimensions must agree."""
        if unit.dimension != self.unit.dimension:
            raise ValueError(f"Cannot convert {self.unit.symbol} to {unit.symbol}")
        return self.value * self.unit.factor / unit.factor


class HKQuantityTypeIdentifier(str, Enum):
    STEP_COUNT = "HKQuantityTypeIdentifierStepCount"
    BODY_MASS = "HKQuantityTypeIdentifierBodyMass"
    HEIGHT = "HKQuantityTypeIdentifierHeight"
    ACTIVE_ENERGY_BURNED = "HKQuantityTypeIdentifierActiveEnergyBurned"
    HEART_RATE = "HKQuantityTypeIdentifierHeartRate"


WORKOUT_TYPE = "HKWorkoutTypeIdentifier"

SampleType = Union[HKQuantityTypeIdentifier, str]


def type_name(sample_type: SampleType) -> str:
    """HealthKit identifier string of a sample type."""
    if isinstance(sample_type, HKQuantityTypeIdentifier):
        return sample_type.value
    return sample_type


class HKWorkoutActivityType(IntEnum):
    AMERICAN_FOOTBALL = 1
    BADMINTON = 4
    BASEBALL = 5
    BASKETBALL = 6
    BOXING = 8
    CLIMBING = 9
    CRICKET = 10
    CROSS_TRAINING = 11
    CYCLING = 13
    DANCE = 14
    ELLIPTICAL = 16
    FUNCTIONAL_STRENGTH_TRAINING = 20
    GOLF = 21
    HIKING = 24
    MARTIAL_ARTS = 28
    ROWING = 35
    RUGBY = 36
    RUNNING = 37
    SAILING = 38
    SOCCER = 41
    STAIR_CLIMBING = 44
    SURFING_SPORTS = 45
    SWIMMING = 46
    TABLE_TENNIS = 47
    TENNIS = 48
    TRADITIONAL_STRENGTH_TRAINING = 50
    VOLLEYBALL = 51
    WALKING = 52
    WRESTLING = 56
    YOGA = 57
    DOWNHILL_SKIING = 61
    JUMP_ROPE = 64
    PILATES = 66
    SNOWBOARDING = 67
    OTHER = 3000


class HKAuthorizationStatus(IntEnum):
    """Write (share) authorization for one sample type."""

    NOT_DETERMINED = 0
    SHARING_DENIED = 1
    SHARING_AUTHORIZED = 2


class HKAuthorizationRequestStatus(IntEnum):
    """Whether showing the authorization sheet would ask anything new."""

    UNKNOWN = 0
    SHOULD_REQUEST = 1
    UNNECESSARY = 2


@dataclass
class HKQuantitySample:
    quantity_type: HKQuantityTypeIdentifier
    quantity: HKQuantity
    start_date: datetime
    end_date: datetime
    uuid: str = field(default_factory=lambda: str(uuid4()))
    source_name: str | None = None


@dataclass
class HKWorkout:
    activity_type: int
    start_date: datetime
    end_date: datetime
    total_energy_burned: HKQuantity | None = None
    total_distance: HKQuantity | None = None
    uuid: str = field(default_factory=lambda: str(uuid4()))
    source_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return (self.end_date - self.start_date).total_seconds()


HKObject = Union[HKQuantitySample, HKWorkout]


@runtime_checkable
class HealthKitStore(Protocol):
    """The slice of ``HKHealthStore`` this package relies on."""

    def is_health_data_available(self) -> bool:
        ...

    def authorization_status(self, sample_type: SampleType) -> HKAuthorizationStatus:
        ...

    async def request_status_for_authorization(
        self, write_types: set[SampleType], read_types: set[SampleType]
    ) -> HKAuthorizationRequestStatus:
        ...

    async def request_authorization(
        self, write_types: set[SampleType], read_types: set[SampleType]
    ) -> bool:
        """Present the authorization sheet; True once the user dismissed it."""
        ...

    async def execute_sample_query(
        self,
        sample_type: SampleType,
        start: datetime,
        end: datetime,
        *,
        limit: int = 0,
        ascending: bool = False,
    ) -> list[HKObject]:
        """Samples whose start date lies in ``[start, end]``; ``limit=0`` means no limit."""
        ...

    async def save_object(self, obj: HKObject) -> bool:
        ...
