"""Tests for the Health Connect record codec."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from healthbridge.domains.health.connectors.health_connect import codec
from healthbridge.domains.health.connectors.health_connect.records import (
    DataOrigin,
    ExerciseSessionRecord,
    HeartRateRecord,
    HeartRateSample,
    Mass,
    Metadata,
    StepsRecord,
    WeightRecord,
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

UTC = timezone.utc
START = datetime(2025, 3, 14, 14, 0, tzinfo=UTC)
END = START + timedelta(hours=1)


def _roundtrip(record):
    native = codec.encode(record)
    return codec.decode(native, type(record))


def _comparable(record: HealthMetricRecord) -> HealthMetricRecord:
    return dataclasses.replace(record, id="", data_origin="")


RECORDS = [
    Steps(timestamp=START, count=4200, start_time=START, end_time=END),
    Weight(timestamp=START, value=72.5),
    Height(timestamp=START, value=180.0),
    ActiveCaloriesBurned(timestamp=START, energy=310.5, start_time=START, end_time=END),
    HeartRate(timestamp=START, beats_per_minute=128.0),
    Workout(
        timestamp=START,
        activity_type=ActivityType.HIKING,
        title="Morning hike",
        start_time=START,
        end_time=END,
    ),
]


class TestRoundTrip:
    @pytest.mark.parametrize("record", RECORDS, ids=lambda r: r.metric_name)
    def test_decode_of_encode_preserves_record(self, record):
        decoded = _roundtrip(record)
        expected = _comparable(record)
        actual = _comparable(decoded)
        for field in dataclasses.fields(expected):
            want, got = getattr(expected, field.name), getattr(actual, field.name)
            if isinstance(want, float):
                assert got == pytest.approx(want)
            else:
                assert got == want, field.name

    def test_heart_rate_is_rounded_to_whole_beats(self):
        decoded = _roundtrip(HeartRate(timestamp=START, beats_per_minute=71.6))
        assert decoded.beats_per_minute == 72.0


class TestDecode:
    def test_mismatched_native_type_returns_none(self):
        native = WeightRecord(time=START, weight=Mass.kilograms(70))
        assert codec.decode(native, Steps) is None

    def test_metadata_is_carried(self):
        native = StepsRecord(
            start_time=START,
            end_time=END,
            count=12,
            metadata=Metadata(id="abc", data_origin=DataOrigin("com.fitness.app")),
        )
        steps = codec.decode(native, Steps)
        assert steps.id == "abc"
        assert steps.data_origin == "com.fitness.app"
        assert steps.timestamp == START

    def test_first_sample_is_used(self):
        native = HeartRateRecord(
            start_time=START,
            end_time=END,
            samples=[HeartRateSample(START, 90), HeartRateSample(END, 150)],
        )
        assert codec.decode(native, HeartRate).beats_per_minute == 90.0

    def test_heart_rate_without_samples_is_zero(self):
        native = HeartRateRecord(start_time=START, end_time=END, samples=[])
        assert codec.decode(native, HeartRate).beats_per_minute == 0.0

    def test_unreadable_weight_uses_default(self):
        native = WeightRecord(time=START, weight=object())
        assert codec.decode(native, Weight).value == 70.0

    def test_weight_in_text_form(self):
        native = WeightRecord(time=START, weight="75.5 kg")
        assert codec.decode(native, Weight).value == 75.5

    def test_malformed_record_raises_decode_error(self):
        native = StepsRecord(start_time=END, end_time=START, count=5)
        with pytest.raises(RecordDecodeError):
            codec.decode(native, Steps)

    def test_naive_native_instants_are_utc(self):
        native = WeightRecord(time=datetime(2025, 3, 14, 8), weight=Mass.kilograms(70))
        assert codec.decode(native, Weight).timestamp == datetime(2025, 3, 14, 8, tzinfo=UTC)


class TestActivityTable:
    def test_known_codes(self):
        assert codec.activity_from_exercise_type(7) is ActivityType.RUNNING
        assert codec.activity_from_exercise_type(71) is ActivityType.TRADITIONAL_STRENGTH_TRAINING
        assert codec.activity_from_exercise_type(0) is ActivityType.OTHER

    def test_unmapped_code_decodes_to_unknown(self):
        assert codec.activity_from_exercise_type(999) is ActivityType.UNKNOWN

    def test_unknown_activity_encodes_to_other(self):
        assert codec.exercise_type_from_activity(ActivityType.UNKNOWN) == codec.OTHER_WORKOUT

    def test_table_is_bijective_over_mapped_activities(self):
        for code, activity in codec.EXERCISE_TYPE_TO_ACTIVITY.items():
            assert codec.exercise_type_from_activity(activity) == code

    def test_every_activity_except_unknown_has_a_code(self):
        mapped = set(codec.ACTIVITY_TO_EXERCISE_TYPE)
        assert set(ActivityType) - mapped == {ActivityType.UNKNOWN}

    def test_session_record_decodes_activity(self):
        native = ExerciseSessionRecord(start_time=START, end_time=END, exercise_type=79)
        workout = codec.decode(native, Workout)
        assert workout.activity_type is ActivityType.WALKING
        assert workout.title is None


class TestEncode:
    def test_unknown_record_type_raises(self):
        @dataclasses.dataclass(kw_only=True)
        class BodyFat(HealthMetricRecord):
            percentage: float

        with pytest.raises(RecordEncodeError):
            codec.encode(BodyFat(timestamp=START, percentage=18.0))

    def test_instants_are_millisecond_utc(self):
        start = datetime(2025, 3, 14, 16, 0, 0, 123456, tzinfo=timezone(timedelta(hours=2)))
        native = codec.encode(
            Steps(timestamp=start, count=1, start_time=start, end_time=start + timedelta(minutes=1))
        )
        assert native.start_time.tzinfo is UTC
        assert native.start_time.microsecond == 123000
        assert native.start_time.hour == 14

    def test_encoded_records_have_empty_metadata(self):
        native = codec.encode(Weight(timestamp=START, value=70.0, id="keep-out"))
        assert native.metadata.id == ""

    def test_height_is_written_in_meters(self):
        native = codec.encode(Height(timestamp=START, value=175.0))
        assert native.height.in_meters == pytest.approx(1.75)
