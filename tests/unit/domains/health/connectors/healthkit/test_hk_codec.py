"""Tests for the HealthKit codec."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from healthbridge.domains.health.connectors.healthkit import codec
from healthbridge.domains.health.connectors.healthkit.objects import (
    WORKOUT_TYPE,
    HKQuantity,
    HKQuantitySample,
    HKQuantityTypeIdentifier,
    HKUnit,
    HKWorkout,
    HKWorkoutActivityType,
)
from healthbridge.domains.health.domain_logic.models import (
    ActiveCaloriesBurned,
    ActivityType,
    HealthDataType,
    HeartRate,
    Height,
    Steps,
    Weight,
    Workout,
)

UTC = timezone.utc
START = datetime(2025, 3, 14, 14, 0, tzinfo=UTC)
END = START + timedelta(hours=1)


def _comparable(record):
    return dataclasses.replace(record, id="", data_origin="")


RECORDS = [
    Steps(timestamp=START, count=4200, start_time=START, end_time=END),
    Weight(timestamp=START, value=72.5),
    Height(timestamp=START, value=180.0),
    ActiveCaloriesBurned(timestamp=START, energy=310.5, start_time=START, end_time=END),
    HeartRate(timestamp=START, beats_per_minute=71.6),
    Workout(
        timestamp=START,
        activity_type=ActivityType.SURFING,
        start_time=START,
        end_time=END,
        energy_burned=420.0,
        distance=5200.0,
        title="Evening surf",
    ),
]


class TestRoundTrip:
    @pytest.mark.parametrize("record", RECORDS, ids=lambda r: r.metric_name)
    def test_decode_of_encode_preserves_record(self, record):
        decoded = codec.decode(codec.encode(record), type(record))
        expected, actual = _comparable(record), _comparable(decoded)
        for field in dataclasses.fields(expected):
            want, got = getattr(expected, field.name), getattr(actual, field.name)
            if isinstance(want, float):
                assert got == pytest.approx(want)
            else:
                assert got == want, field.name


class TestDecode:
    def test_weight_in_pounds_becomes_kilograms(self):
        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.BODY_MASS, HKQuantity(HKUnit.POUND, 165.0), START, START
        )
        assert codec.decode(sample, Weight).value == pytest.approx(74.84274105)

    def test_height_in_inches_becomes_centimetres(self):
        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.HEIGHT, HKQuantity(HKUnit.INCH, 70.0), START, START
        )
        assert codec.decode(sample, Height).value == pytest.approx(177.8)

    def test_other_sample_kind_returns_none(self):
        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.HEART_RATE, HKQuantity(HKUnit.COUNT_PER_MINUTE, 60.0), START, START
        )
        assert codec.decode(sample, Steps) is None
        assert codec.decode(sample, Workout) is None

    def test_source_and_uuid_are_carried(self):
        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.STEP_COUNT,
            HKQuantity(HKUnit.COUNT, 12.0),
            START,
            END,
            uuid="5D9A",
            source_name="Apple Watch",
        )
        steps = codec.decode(sample, Steps)
        assert steps.id == "5D9A"
        assert steps.data_origin == "Apple Watch"

    def test_missing_source_is_unknown(self):
        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.STEP_COUNT, HKQuantity(HKUnit.COUNT, 1.0), START, END
        )
        assert codec.decode(sample, Steps).data_origin == "Unknown"

    def test_workout_totals_are_optional(self):
        workout = codec.decode(
            HKWorkout(activity_type=HKWorkoutActivityType.YOGA, start_date=START, end_date=END), Workout
        )
        assert workout.activity_type is ActivityType.YOGA
        assert workout.energy_burned is None
        assert workout.distance is None

    def test_incompatible_unit_raises_decode_error(self):
        from healthbridge.domains.health.domain_logic.errors import RecordDecodeError

        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.BODY_MASS, HKQuantity(HKUnit.METER, 1.0), START, START
        )
        with pytest.raises(RecordDecodeError):
            codec.decode(sample, Weight)

    def test_native_fault_raises_decode_error(self):
        from healthbridge.domains.health.domain_logic.errors import RecordDecodeError

        class FaultingQuantity:
            def double_value(self, unit):
                raise RuntimeError("bridge call failed")

        sample = HKQuantitySample(
            HKQuantityTypeIdentifier.BODY_MASS, FaultingQuantity(), START, START
        )
        with pytest.raises(RecordDecodeError):
            codec.decode(sample, Weight)


class TestActivityTable:
    @pytest.mark.parametrize(
        ("activity", "hk"),
        [
            (ActivityType.DANCING, HKWorkoutActivityType.DANCE),
            (ActivityType.SKIING, HKWorkoutActivityType.DOWNHILL_SKIING),
            (ActivityType.SURFING, HKWorkoutActivityType.SURFING_SPORTS),
            (ActivityType.OTHER, HKWorkoutActivityType.OTHER),
        ],
    )
    def test_renamed_activities(self, activity, hk):
        assert codec.hk_from_activity(activity) is hk
        assert codec.activity_from_hk(hk) is activity

    @pytest.mark.parametrize(
        "activity", [ActivityType.ICE_SKATING, ActivityType.PADDLING, ActivityType.UNKNOWN]
    )
    def test_unmapped_activities_encode_to_other(self, activity):
        assert codec.hk_from_activity(activity) is HKWorkoutActivityType.OTHER

    def test_unmapped_code_decodes_to_unknown(self):
        assert codec.activity_from_hk(73) is ActivityType.UNKNOWN


class TestSampleTypes:
    def test_exercise_maps_to_workout_type(self):
        assert codec.sample_type_for(HealthDataType.EXERCISE_SESSION) == WORKOUT_TYPE

    def test_every_data_type_has_a_sample_type(self):
        assert set(codec.SAMPLE_TYPES) == set(HealthDataType)


class TestEncode:
    def test_weight_is_written_in_grams(self):
        sample = codec.encode(Weight(timestamp=START, value=72.5))
        assert sample.quantity == HKQuantity(HKUnit.GRAM, 72500.0)
        assert sample.start_date == sample.end_date == START

    def test_workout_carries_energy_and_distance(self):
        workout = codec.encode(RECORDS[-1])
        assert workout.total_energy_burned.double_value(HKUnit.KILOCALORIE) == 420.0
        assert workout.total_distance.double_value(HKUnit.METER) == 5200.0
        assert workout.duration == 3600.0

    def test_workout_title_is_kept_in_metadata(self):
        workout = codec.encode(RECORDS[-1])
        assert workout.metadata == {codec.WORKOUT_TITLE_KEY: "Evening surf"}

    def test_untitled_workout_has_no_metadata(self):
        untitled = dataclasses.replace(RECORDS[-1], title=None)
        assert codec.encode(untitled).metadata == {}
