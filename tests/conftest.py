"""Shared test fixtures for HealthBridge tests."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTH_PLATFORM", "unsupported")
    monkeypatch.setenv("APP_DATA_ORIGIN", "HealthBridge")
    monkeypatch.setenv("REQUEST_FULL_HISTORY", "false")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from healthbridge.domains.health.connectors.health_connect.records import (  # noqa: E402
    SDK_AVAILABLE,
    DataOrigin,
    Metadata,
    ReadRecordsRequest,
    ReadRecordsResponse,
)
from healthbridge.domains.health.connectors.healthkit.objects import (  # noqa: E402
    WORKOUT_TYPE,
    HKAuthorizationRequestStatus,
    HKAuthorizationStatus,
    HKObject,
    HKQuantitySample,
    HKWorkout,
    SampleType,
    type_name,
)


# ---------------------------------------------------------------------------
# Fake Health Connect client
# ---------------------------------------------------------------------------

def record_time(record: Any) -> datetime:
    """The instant a record is filtered and sorted by."""
    start = getattr(record, "start_time", None)
    return start if start is not None else record.time


class FakeHealthConnectClient:
    """In-memory Health Connect client.

    ``granted`` is the permission set the device already holds. The system
    prompt grants everything asked for except identifiers in ``deny``.
    """

    def __init__(
        self,
        granted: set[str] | None = None,
        *,
        api_level: int = 34,
        sdk_status: int = SDK_AVAILABLE,
    ) -> None:
        self.granted: set[str] = set(granted or ())
        self.deny: set[str] = set()
        self._api_level = api_level
        self.sdk_status = sdk_status
        self.records: list[Any] = []

        self.fail_granted = False
        self.fail_prompt = False
        self.dismiss_prompt = False
        self.fail_reads = False
        self.fail_insert = False
        self.fail_read_types: set[type] = set()

        self.prompts: list[list[str]] = []
        self.reads: list[ReadRecordsRequest] = []
        self.provider_updates: list[str] = []
        self._next_id = 1

    @property
    def api_level(self) -> int:
        return self._api_level

    def get_sdk_status(self) -> int:
        return self.sdk_status

    def open_provider_update(self, package_name: str) -> None:
        self.provider_updates.append(package_name)

    async def get_granted_permissions(self) -> set[str] | None:
        if self.fail_granted:
            raise RuntimeError("permission controller unavailable")
        return set(self.granted)

    async def request_permissions(self, permissions: list[str]) -> set[str] | None:
        self.prompts.append(list(permissions))
        if self.fail_prompt:
            raise RuntimeError("activity result launcher failed")
        if self.dismiss_prompt:
            return None
        allowed = {p for p in permissions if p not in self.deny}
        self.granted |= allowed
        return allowed

    async def read_records(self, request: ReadRecordsRequest) -> ReadRecordsResponse | None:
        self.reads.append(request)
        if self.fail_reads or request.record_type in self.fail_read_types:
            raise RuntimeError("read failed")
        window = request.time_range_filter
        matches = [
            r for r in self.records
            if isinstance(r, request.record_type)
            and window.start_time <= record_time(r) <= window.end_time
        ]
        matches.sort(key=record_time, reverse=not request.ascending_order)
        offset = int(request.page_token or 0)
        page = matches[offset:offset + request.page_size]
        next_offset = offset + request.page_size
        token = str(next_offset) if next_offset < len(matches) else None
        return ReadRecordsResponse(records=page, page_token=token)

    async def insert_records(self, records: list[Any]) -> list[str]:
        if self.fail_insert:
            raise RuntimeError("insert rejected")
        ids = []
        for record in records:
            record_id = f"hc-{self._next_id}"
            self._next_id += 1
            record.metadata = Metadata(id=record_id, data_origin=DataOrigin("com.example.healthbridge"))
            self.records.append(record)
            ids.append(record_id)
        return ids


# ---------------------------------------------------------------------------
# Fake HealthKit store
# ---------------------------------------------------------------------------

class FakeHealthKitStore:
    """In-memory HealthKit store.

    The authorization sheet marks every type it is shown for as determined
    and authorizes each write type unless it is listed in ``deny_write``.
    """

    def __init__(self, *, available: bool = True) -> None:
        self.available = available
        self.statuses: dict[str, HKAuthorizationStatus] = {}
        self.determined: set[str] = set()
        self.deny_write: set[str] = set()
        self.samples: list[HKObject] = []

        self.sheet_result = True
        self.fail_sheet = False
        self.fail_status = False
        self.fail_save = False
        self.fail_query_types: set[str] = set()

        self.sheets: list[tuple[set[str], set[str]]] = []
        self.queries: list[tuple[str, datetime, datetime]] = []
        self.saved: list[HKObject] = []

    def is_health_data_available(self) -> bool:
        return self.available

    def authorization_status(self, sample_type: SampleType) -> HKAuthorizationStatus:
        if self.fail_status:
            raise RuntimeError("authorization status unavailable")
        return self.statuses.get(type_name(sample_type), HKAuthorizationStatus.NOT_DETERMINED)

    async def request_status_for_authorization(
        self, write_types: set[SampleType], read_types: set[SampleType]
    ) -> HKAuthorizationRequestStatus:
        if self.fail_status:
            raise RuntimeError("authorization status unavailable")
        names = {type_name(t) for t in write_types | read_types}
        if names <= self.determined:
            return HKAuthorizationRequestStatus.UNNECESSARY
        return HKAuthorizationRequestStatus.SHOULD_REQUEST

    async def request_authorization(
        self, write_types: set[SampleType], read_types: set[SampleType]
    ) -> bool:
        writes = {type_name(t) for t in write_types}
        reads = {type_name(t) for t in read_types}
        self.sheets.append((writes, reads))
        if self.fail_sheet:
            raise RuntimeError("authorization sheet failed")
        self.determined |= writes | reads
        for name in writes:
            self.statuses[name] = (
                HKAuthorizationStatus.SHARING_DENIED
                if name in self.deny_write
                else HKAuthorizationStatus.SHARING_AUTHORIZED
            )
        return self.sheet_result

    def grant_all(self, *sample_types: SampleType) -> None:
        """Mark types as already asked about, with write access authorized."""
        for sample_type in sample_types:
            name = type_name(sample_type)
            self.determined.add(name)
            self.statuses[name] = HKAuthorizationStatus.SHARING_AUTHORIZED

    async def execute_sample_query(
        self,
        sample_type: SampleType,
        start: datetime,
        end: datetime,
        *,
        limit: int = 0,
        ascending: bool = False,
    ) -> list[HKObject]:
        name = type_name(sample_type)
        self.queries.append((name, start, end))
        if name in self.fail_query_types:
            raise RuntimeError(f"query for {name} failed")
        if name == WORKOUT_TYPE:
            matches = [s for s in self.samples if isinstance(s, HKWorkout)]
        else:
            matches = [
                s for s in self.samples
                if isinstance(s, HKQuantitySample) and type_name(s.quantity_type) == name
            ]
        matches = [s for s in matches if start <= s.start_date <= end]
        matches.sort(key=lambda s: s.start_date, reverse=not ascending)
        return matches[:limit] if limit else matches

    async def save_object(self, obj: HKObject) -> bool:
        if self.fail_save:
            return False
        obj.source_name = "HealthBridge"
        self.samples.append(obj)
        self.saved.append(obj)
        return True


@pytest.fixture
def health_connect_client() -> FakeHealthConnectClient:
    """A Health Connect client with no permissions granted yet."""
    return FakeHealthConnectClient()


@pytest.fixture
def healthkit_store() -> FakeHealthKitStore:
    """An available HealthKit store that has never shown its sheet."""
    return FakeHealthKitStore()
