"""Canonical records <-> HealthKit samples and workouts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timezone
from typing import Any, TypeVar

from healthbridge.domains.health.connectors.healthkit.objects import (
    WORKOUT_TYPE,
    HKQuantity,
    HKQuantitySample,
    HKQuantityTypeIdentifier,
    HKUnit,
    HKWorkout,
    HKWorkoutActivityType,
    SampleType,
)
from healthbridge.domains.health.domain_logic.errors import (
    RecordDecodeError,
    RecordEncodeError,
)
from healthbridge.domains.health.domain_logic.models import (
    ActiveCaloriesBurned,
    ActivityType,
    HealthDataType,
    HealthMetricRecord,
    HeartRate,
    Height,
    Steps,
    Weight,
    Workout,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=HealthMetricRecord)

UNKNOWN_SOURCE = "Unknown"

# Custom metadata key; keys with the HK prefix are reserved by HealthKit.
WORKOUT_TITLE_KEY = "HealthBridgeWorkoutTitle"

# ---------------------------------------------------------------------------
# Type tables
# ---------------------------------------------------------------------------

SAMPLE_TYPES: dict[HealthDataType, SampleType] = {
    HealthDataType.STEPS: HKQuantityTypeIdentifier.STEP_COUNT,
    HealthDataType.WEIGHT: HKQuantityTypeIdentifier.BODY_MASS,
    HealthDataType.HEIGHT: HKQuantityTypeIdentifier.HEIGHT,
    HealthDataType.ACTIVE_CALORIES_BURNED: HKQuantityTypeIdentifier.ACTIVE_ENERGY_BURNED,
    HealthDataType.HEART_RATE: HKQuantityTypeIdentifier.HEART_RATE,
    HealthDataType.EXERCISE_SESSION: WORKOUT_TYPE,
}


def sample_type_for(data_type: HealthDataType) -> SampleType:
    return SAMPLE_TYPES[data_type]


ACTIVITY_TO_HK: dict[ActivityType, HKWorkoutActivityType] = {
    ActivityType.RUNNING: HKWorkoutActivityType.RUNNING,
    ActivityType.CYCLING: HKWorkoutActivityType.CYCLING,
    ActivityType.WALKING: HKWorkoutActivityType.WALKING,
    ActivityType.SWIMMING: HKWorkoutActivityType.SWIMMING,
    ActivityType.HIKING: HKWorkoutActivityType.HIKING,
    ActivityType.YOGA: HKWorkoutActivityType.YOGA,
    ActivityType.FUNCTIONAL_STRENGTH_TRAINING: HKWorkoutActivityType.FUNCTIONAL_STRENGTH_TRAINING,
    ActivityType.TRADITIONAL_STRENGTH_TRAINING: HKWorkoutActivityType.TRADITIONAL_STRENGTH_TRAINING,
    ActivityType.ELLIPTICAL: HKWorkoutActivityType.ELLIPTICAL,
    ActivityType.ROWING: HKWorkoutActivityType.ROWING,
    ActivityType.PILATES: HKWorkoutActivityType.PILATES,
    ActivityType.DANCING: HKWorkoutActivityType.DANCE,
    ActivityType.SOCCER: HKWorkoutActivityType.SOCCER,
    ActivityType.BASKETBALL: HKWorkoutActivityType.BASKETBALL,
    ActivityType.BASEBALL: HKWorkoutActivityType.BASEBALL,
    ActivityType.TENNIS: HKWorkoutActivityType.TENNIS,
    ActivityType.GOLF: HKWorkoutActivityType.GOLF,
    ActivityType.BADMINTON: HKWorkoutActivityType.BADMINTON,
    ActivityType.TABLE_TENNIS: HKWorkoutActivityType.TABLE_TENNIS,
    ActivityType.VOLLEYBALL: HKWorkoutActivityType.VOLLEYBALL,
    ActivityType.CRICKET: HKWorkoutActivityType.CRICKET,
    ActivityType.RUGBY: HKWorkoutActivityType.RUGBY,
    ActivityType.AMERICAN_FOOTBALL: HKWorkoutActivityType.AMERICAN_FOOTBALL,
    ActivityType.SKIING: HKWorkoutActivityType.DOWNHILL_SKIING,
    ActivityType.SNOWBOARDING: HKWorkoutActivityType.SNOWBOARDING,
    ActivityType.SURFING: HKWorkoutActivityType.SURFING_SPORTS,
    ActivityType.SAILING: HKWorkoutActivityType.SAILING,
    ActivityType.MARTIAL_ARTS: HKWorkoutActivityType.MARTIAL_ARTS,
    ActivityType.BOXING: HKWorkoutActivityType.BOXING,
    ActivityType.WRESTLING: HKWorkoutActivityType.WRESTLING,
    ActivityType.CLIMBING: HKWorkoutActivityType.CLIMBING,
    ActivityType.CROSS_TRAINING: HKWorkoutActivityType.CROSS_TRAINING,
    ActivityType.STAIR_CLIMBING: HKWorkoutActivityType.STAIR_CLIMBING,
    ActivityType.JUMP_ROPE: HKWorkoutActivityType.JUMP_ROPE,
    ActivityType.OTHER: HKWorkoutActivityType.OTHER,
}

HK_TO_ACTIVITY: dict[int, ActivityType] = {int(hk): a for a, hk in ACTIVITY_TO_HK.items()}


def activity_from_hk(activity_type: int) -> ActivityType:
    """Unmapped HealthKit codes decode to ``ActivityType.UNKNOWN``."""
    return HK_TO_ACTIVITY.get(int(activity_type), ActivityType.UNKNOWN)


def hk_from_activity(activity_type: ActivityType) -> HKWorkoutActivityType:
    """Unmapped activities (ice skating, paddling, unknown) encode to ``OTHER``."""
    return ACTIVITY_TO_HK.get(activity_type, HKWorkoutActivityType.OTHER)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def _aware(value):
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _quantity_sample(native: Any, identifier: HKQuantityTypeIdentifier) -> HKQuantitySample | None:
    if not isinstance(native, HKQuantitySample) or native.quantity_type != identifier:
        return None
    return native


def _decode_steps(native: Any) -> Steps | None:
    sample = _quantity_sample(native, HKQuantityTypeIdentifier.STEP_COUNT)
    if sample is None:
        return None
    start, end = _aware(sample.start_date), _aware(sample.end_date)
    return Steps(
        id=sample.uuid,
        data_origin=sample.source_name or UNKNOWN_SOURCE,
        timestamp=start,
        count=int(sample.quantity.double_value(HKUnit.COUNT)),
        start_time=start,
        end_time=end,
    )


def _decode_weight(native: Any) -> Weight | None:
    sample = _quantity_sample(native, HKQuantityTypeIdentifier.BODY_MASS)
    if sample is None:
        return None
    return Weight(
        id=sample.uuid,
        data_origin=sample.source_name or UNKNOWN_SOURCE,
        timestamp=_aware(sample.start_date),
        value=sample.quantity.double_value(HKUnit.GRAM) / 1000.0,
    )


def _decode_height(native: Any) -> Height | None:
    sample = _quantity_sample(native, HKQuantityTypeIdentifier.HEIGHT)
    if sample is None:
        return None
    return Height(
        id=sample.uuid,
        data_origin=sample.source_name or UNKNOWN_SOURCE,
        timestamp=_aware(sample.start_date),
        value=sample.quantity.double_value(HKUnit.METER) * 100.0,
    )


def _decode_active_calories(native: Any) -> ActiveCaloriesBurned | None:
    sample = _quantity_sample(native, HKQuantityTypeIdentifier.ACTIVE_ENERGY_BURNED)
    if sample is None:
        return None
    start, end = _aware(sample.start_date), _aware(sample.end_date)
    return ActiveCaloriesBurned(
        id=sample.uuid,
        data_origin=sample.source_name or UNKNOWN_SOURCE,
        timestamp=start,
        energy=sample.quantity.double_value(HKUnit.KILOCALORIE),
        start_time=start,
        end_time=end,
    )


def _decode_heart_rate(native: Any) -> HeartRate | None:
    sample = _quantity_sample(native, HKQuantityTypeIdentifier.HEART_RATE)
    if sample is None:
        return None
    return HeartRate(
        id=sample.uuid,
        data_origin=sample.source_name or UNKNOWN_SOURCE,
        timestamp=_aware(sample.start_date),
        beats_per_minute=sample.quantity.double_value(HKUnit.COUNT_PER_MINUTE),
    )


def _decode_workout(native: Any) -> Workout | None:
    if not isinstance(native, HKWorkout):
        return None
    start, end = _aware(native.start_date), _aware(native.end_date)
    energy = distance = None
    if native.total_energy_burned is not None:
        energy = native.total_energy_burned.double_value(HKUnit.KILOCALORIE)
    if native.total_distance is not None:
        distance = native.total_distance.double_value(HKUnit.METER)
    return Workout(
        id=native.uuid,
        data_origin=native.source_name or UNKNOWN_SOURCE,
        timestamp=start,
        activity_type=activity_from_hk(native.activity_type),
        start_time=start,
        end_time=end,
        energy_burned=energy,
        distance=distance,
        title=(native.metadata or {}).get(WORKOUT_TITLE_KEY) or None,
    )


_DECODERS: dict[type[HealthMetricRecord], Callable[[Any], HealthMetricRecord | None]] = {
    Steps: _decode_steps,
    Weight: _decode_weight,
    Height: _decode_height,
    ActiveCaloriesBurned: _decode_active_calories,
    HeartRate: _decode_heart_rate,
    Workout: _decode_workout,
}


def decode(native: Any, variant: type[R]) -> R | None:
    """Convert a HealthKit object into ``variant``.

    Queries hand back the ``HKSample`` supertype, so a sample of another
    kind yields None rather than an error.
    """
    decoder = _DECODERS.get(variant)
    if decoder is None:
        return None
    try:
        return decoder(native)  # type: ignore[return-value]
    except Exception as exc:
        raise RecordDecodeError(
            f"Could not decode {type(native).__name__} as {variant.__name__}: {exc}"
        ) from exc


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def _sample(identifier, unit, value, start, end) -> HKQuantitySample:
    return HKQuantitySample(
        quantity_type=identifier,
        quantity=HKQuantity(unit, value),
        start_date=start.astimezone(timezone.utc),
        end_date=end.astimezone(timezone.utc),
    )


def _encode_workout(record: Workout) -> HKWorkout:
    energy = distance = None
    if record.energy_burned is not None:
        energy = HKQuantity(HKUnit.KILOCALORIE, record.energy_burned)
    if record.distance is not None:
        distance = HKQuantity(HKUnit.METER, record.distance)
    return HKWorkout(
        activity_type=hk_from_activity(record.activity_type),
        start_date=record.start_time.astimezone(timezone.utc),
        end_date=record.end_time.astimezone(timezone.utc),
        total_energy_burned=energy,
        total_distance=distance,
        metadata={WORKOUT_TITLE_KEY: record.title} if record.title else {},
    )


_ENCODERS: dict[type[HealthMetricRecord], Callable[[Any], Any]] = {
    Steps: lambda r: _sample(
        HKQuantityTypeIdentifier.STEP_COUNT, HKUnit.COUNT, float(r.count), r.start_time, r.end_time
    ),
    Weight: lambda r: _sample(
        HKQuantityTypeIdentifier.BODY_MASS, HKUnit.GRAM, r.value * 1000.0, r.timestamp, r.timestamp
    ),
    Height: lambda r: _sample(
        HKQuantityTypeIdentifier.HEIGHT, HKUnit.METER, r.value / 100.0, r.timestamp, r.timestamp
    ),
    ActiveCaloriesBurned: lambda r: _sample(
        HKQuantityTypeIdentifier.ACTIVE_ENERGY_BURNED, HKUnit.KILOCALORIE, r.energy,
        r.start_time, r.end_time,
    ),
    HeartRate: lambda r: _sample(
        HKQuantityTypeIdentifier.HEART_RATE, HKUnit.COUNT_PER_MINUTE, r.beats_per_minute,
        r.timestamp, r.timestamp,
    ),
    Workout: _encode_workout,
}


def encode(record: HealthMetricRecord) -> Any:
    """Convert a canonical record into a HealthKit sample or workout.

    Raises:
        RecordEncodeError: if the record type has no HealthKit form.
    """
    encoder = _ENCODERS.get(type(record))
    if encoder is None:
        raise RecordEncodeError(f"{type(record).__name__} cannot be written to HealthKit")
    return encoder(record)
