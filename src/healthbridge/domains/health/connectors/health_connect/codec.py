"""Canonical records <-> Health Connect records.

Decoding is dispatched on the requested variant. Each decoder first checks
that the native object is the record class it expects and returns None on
a mismatch, so callers can skip it. A record of the right class that cannot
be read raises ``RecordDecodeError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from healthbridge.domains.health.connectors.health_connect.records import (
    ActiveCaloriesBurnedRecord,
    Energy,
    ExerciseSessionRecord,
    HeartRateRecord,
    HeartRateSample,
    HeightRecord,
    Length,
    Mass,
    Metadata,
    StepsRecord,
    WeightRecord,
    from_instant,
    to_instant,
    zone_offset_of,
)
from healthbridge.domains.health.connectors.health_connect.units import (
    extract_energy_kcal,
    extract_length_cm,
    extract_mass_kg,
)
from healthbridge.domains.health.domain_logic.errors import (
    RecordDecodeError,
    RecordEncodeError,
)
from healthbridge.domains.health.domain_logic.models import (
    ActiveCaloriesBurned,
    ActivityType,
    HealthMetricRecord,
    HeartRate,
    Height,
    Steps,
    Weight,
    Workout,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=HealthMetricRecord)

# ---------------------------------------------------------------------------
# Exercise type table
# ---------------------------------------------------------------------------

OTHER_WORKOUT = 0

EXERCISE_TYPE_TO_ACTIVITY: dict[int, ActivityType] = {
    7: ActivityType.RUNNING,
    8: ActivityType.CYCLING,
    79: ActivityType.WALKING,
    68: ActivityType.SWIMMING,
    36: ActivityType.HIKING,
    81: ActivityType.YOGA,
    28: ActivityType.FUNCTIONAL_STRENGTH_TRAINING,
    71: ActivityType.TRADITIONAL_STRENGTH_TRAINING,
    25: ActivityType.ELLIPTICAL,
    61: ActivityType.ROWING,
    54: ActivityType.PILATES,
    19: ActivityType.DANCING,
    62: ActivityType.SOCCER,
    9: ActivityType.BASKETBALL,
    5: ActivityType.BASEBALL,
    73: ActivityType.TENNIS,
    32: ActivityType.GOLF,
    3: ActivityType.BADMINTON,
    72: ActivityType.TABLE_TENNIS,
    78: ActivityType.VOLLEYBALL,
    18: ActivityType.CRICKET,
    63: ActivityType.RUGBY,
    1: ActivityType.AMERICAN_FOOTBALL,
    64: ActivityType.SKIING,
    66: ActivityType.SNOWBOARDING,
    40: ActivityType.ICE_SKATING,
    67: ActivityType.SURFING,
    53: ActivityType.PADDLING,
    65: ActivityType.SAILING,
    47: ActivityType.MARTIAL_ARTS,
    11: ActivityType.BOXING,
    82: ActivityType.WRESTLING,
    59: ActivityType.CLIMBING,
    20: ActivityType.CROSS_TRAINING,
    70: ActivityType.STAIR_CLIMBING,
    44: ActivityType.JUMP_ROPE,
    OTHER_WORKOUT: ActivityType.OTHER,
}

ACTIVITY_TO_EXERCISE_TYPE: dict[ActivityType, int] = {
    activity: code for code, activity in EXERCISE_TYPE_TO_ACTIVITY.items()
}


def activity_from_exercise_type(exercise_type: int) -> ActivityType:
    """Unmapped codes decode to ``ActivityType.UNKNOWN``."""
    return EXERCISE_TYPE_TO_ACTIVITY.get(exercise_type, ActivityType.UNKNOWN)


def exercise_type_from_activity(activity_type: ActivityType) -> int:
    """Unmapped activities encode to the platform's 'other workout' code."""
    return ACTIVITY_TO_EXERCISE_TYPE.get(activity_type, OTHER_WORKOUT)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

NATIVE_RECORD_TYPES: dict[type[HealthMetricRecord], type] = {
    Steps: StepsRecord,
    Weight: WeightRecord,
    Height: HeightRecord,
    ActiveCaloriesBurned: ActiveCaloriesBurnedRecord,
    HeartRate: HeartRateRecord,
    Workout: ExerciseSessionRecord,
}


def _origin(metadata: Metadata | None) -> tuple[str, str]:
    if metadata is None:
        return "", ""
    package = metadata.data_origin.package_name if metadata.data_origin else ""
    return metadata.id or "", package or ""


def _decode_steps(native: Any) -> Steps | None:
    if not isinstance(native, StepsRecord):
        return None
    record_id, origin = _origin(native.metadata)
    start, end = from_instant(native.start_time), from_instant(native.end_time)
    return Steps(
        id=record_id,
        data_origin=origin,
        timestamp=start,
        count=int(native.count),
        start_time=start,
        end_time=end,
    )


def _decode_weight(native: Any) -> Weight | None:
    if not isinstance(native, WeightRecord):
        return None
    record_id, origin = _origin(native.metadata)
    return Weight(
        id=record_id,
        data_origin=origin,
        timestamp=from_instant(native.time),
        value=extract_mass_kg(native.weight),
    )


def _decode_height(native: Any) -> Height | None:
    if not isinstance(native, HeightRecord):
        return None
    record_id, origin = _origin(native.metadata)
    return Height(
        id=record_id,
        data_origin=origin,
        timestamp=from_instant(native.time),
        value=extract_length_cm(native.height),
    )


def _decode_active_calories(native: Any) -> ActiveCaloriesBurned | None:
    if not isinstance(native, ActiveCaloriesBurnedRecord):
        return None
    record_id, origin = _origin(native.metadata)
    start, end = from_instant(native.start_time), from_instant(native.end_time)
    return ActiveCaloriesBurned(
        id=record_id,
        data_origin=origin,
        timestamp=start,
        energy=extract_energy_kcal(native.energy),
        start_time=start,
        end_time=end,
    )


def _decode_heart_rate(native: Any) -> HeartRate | None:
    if not isinstance(native, HeartRateRecord):
        return None
    record_id, origin = _origin(native.metadata)
    # One canonical reading per record: the first sample's BPM.
    bpm = 0.0
    if native.samples:
        bpm = float(native.samples[0].beats_per_minute)
    return HeartRate(
        id=record_id,
        data_origin=origin,
        timestamp=from_instant(native.start_time),
        beats_per_minute=bpm,
    )


def _decode_workout(native: Any) -> Workout | None:
    if not isinstance(native, ExerciseSessionRecord):
        return None
    record_id, origin = _origin(native.metadata)
    start, end = from_instant(native.start_time), from_instant(native.end_time)
    return Workout(
        id=record_id,
        data_origin=origin,
        timestamp=start,
        activity_type=activity_from_exercise_type(native.exercise_type),
        title=native.title or None,
        start_time=start,
        end_time=end,
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
    """Convert a native record into ``variant``.

    Returns None when ``native`` is not the record class ``variant`` maps
    to. Raises ``RecordDecodeError`` when it is, but cannot be read.
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

def _encode_steps(record: Steps) -> StepsRecord:
    return StepsRecord(
        start_time=to_instant(record.start_time),
        end_time=to_instant(record.end_time),
        count=record.count,
        metadata=Metadata(),
        start_zone_offset=zone_offset_of(record.start_time),
        end_zone_offset=zone_offset_of(record.end_time),
    )


def _encode_weight(record: Weight) -> WeightRecord:
    return WeightRecord(
        time=to_instant(record.timestamp),
        weight=Mass.kilograms(record.value),
        metadata=Metadata(),
        zone_offset=zone_offset_of(record.timestamp),
    )


def _encode_height(record: Height) -> HeightRecord:
    return HeightRecord(
        time=to_instant(record.timestamp),
        height=Length.meters(record.value / 100.0),
        metadata=Metadata(),
        zone_offset=zone_offset_of(record.timestamp),
    )


def _encode_active_calories(record: ActiveCaloriesBurned) -> ActiveCaloriesBurnedRecord:
    return ActiveCaloriesBurnedRecord(
        start_time=to_instant(record.start_time),
        end_time=to_instant(record.end_time),
        energy=Energy.kilocalories(record.energy),
        metadata=Metadata(),
        start_zone_offset=zone_offset_of(record.start_time),
        end_zone_offset=zone_offset_of(record.end_time),
    )


def _encode_heart_rate(record: HeartRate) -> HeartRateRecord:
    time = to_instant(record.timestamp)
    offset = zone_offset_of(record.timestamp)
    # Health Connect stores whole beats per minute.
    sample = HeartRateSample(time=time, beats_per_minute=round(record.beats_per_minute))
    return HeartRateRecord(
        start_time=time,
        end_time=time,
        samples=[sample],
        metadata=Metadata(),
        start_zone_offset=offset,
        end_zone_offset=offset,
    )


def _encode_workout(record: Workout) -> ExerciseSessionRecord:
    return ExerciseSessionRecord(
        start_time=to_instant(record.start_time),
        end_time=to_instant(record.end_time),
        exercise_type=exercise_type_from_activity(record.activity_type),
        title=record.title or None,
        notes=None,
        metadata=Metadata(),
        start_zone_offset=zone_offset_of(record.start_time),
        end_zone_offset=zone_offset_of(record.end_time),
    )


_ENCODERS: dict[type[HealthMetricRecord], Callable[[Any], Any]] = {
    Steps: _encode_steps,
    Weight: _encode_weight,
    Height: _encode_height,
    ActiveCaloriesBurned: _encode_active_calories,
    HeartRate: _encode_heart_rate,
    Workout: _encode_workout,
}


def encode(record: HealthMetricRecord) -> Any:
    """Convert a canonical record into its Health Connect record.

    Raises:
        RecordEncodeError: if the record type has no Health Connect form.
    """
    encoder = _ENCODERS.get(type(record))
    if encoder is None:
        raise RecordEncodeError(f"{type(record).__name__} cannot be written to Health Connect")
    if isinstance(record, Workout) and (record.energy_burned is not None or record.distance is not None):
        logger.debug("Health Connect exercise sessions do not carry energy or distance; dropped")
    return encoder(record)
