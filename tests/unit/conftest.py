from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from dataset_archive.archive.errors import DbConnectError, DbQueryError
from dataset_archive.defs.models import DatatypeSpec
from dataset_archive.storage.record_store import RecordStore

CURRENT_HOUR = datetime(2023, 6, 29, 5, 0, 0, tzinfo=timezone.utc)


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


def dataset_name(region: str, timestamp: datetime, suffix: str = ".tif") -> str:
    """Build a dataset filename, e.g. berlin_20230629T0500Z.tif."""
    return f"{region}_{timestamp.strftime('%Y%m%dT%H%M')}Z{suffix}"


def hours_ago(hours: int) -> datetime:
    return CURRENT_HOUR - timedelta(hours=hours)


# Global state for tracking record store calls. ConfigurableResource is frozen,
# so calls are recorded at module level and reset per test.
_purge_calls = []


class MockRecordStore(RecordStore):
    """
    Mock record store for testing.

    fail_on: datatype names whose purge fails
    failure: "connect" or "query", which DB error to raise
    """

    fail_on: list[str] = []
    failure: str = "query"
    rows: int = 3

    def purge_expired(self, region: str, datatype: DatatypeSpec, cutoff: datetime) -> int:
        _purge_calls.append({"region": region, "datatype": datatype.name, "cutoff": cutoff})
        if datatype.name in self.fail_on:
            if self.failure == "connect":
                raise DbConnectError(f"Mock connect failure for {datatype.name}")
            raise DbQueryError(f"Mock query failure for {datatype.name}")
        return self.rows


@pytest.fixture
def purge_calls():
    """Fresh list of recorded purge calls for each test."""
    _purge_calls.clear()
    return _purge_calls


@pytest.fixture
def record_store(purge_calls):
    return MockRecordStore()


@pytest.fixture
def failing_record_store(purge_calls):
    """Record store whose reclassified purge fails at query time."""
    return MockRecordStore(fail_on=["reclassified"])


@pytest.fixture
def unreachable_record_store(purge_calls):
    """Record store whose every purge fails to connect."""
    return MockRecordStore(fail_on=["temperature", "reclassified", "contourlines"], failure="connect")


@pytest.fixture
def dataset_tree(tmp_path):
    """
    Per-region dataset tree for 'berlin' with the current snapshot and aged files.

    Layout:
        final/berlin/berlin_temperature/   current hour, -48h, -49h, -50h (+ sidecar), -51h
        final/berlin/berlin_reclassified/  current hour, -50h
    """
    final = tmp_path / "final"
    temperature = final / "berlin" / "berlin_temperature"
    reclassified = final / "berlin" / "berlin_reclassified"
    temperature.mkdir(parents=True)
    reclassified.mkdir(parents=True)

    for hours in (0, 48, 49, 50, 51):
        (temperature / dataset_name("berlin", hours_ago(hours))).write_bytes(f"temp-{hours}".encode())
    (temperature / dataset_name("berlin", hours_ago(50), ".tif.aux.xml")).write_text("<aux/>")

    for hours in (0, 50):
        (reclassified / dataset_name("berlin", hours_ago(hours))).write_bytes(f"recl-{hours}".encode())

    return final


@pytest.fixture
def psycopg_mocks():
    """Provide psycopg connection and cursor mocks that support context managers."""
    cursor = MagicMock()
    cursor.__enter__.return_value = cursor
    cursor.__exit__.return_value = False
    cursor.rowcount = 7
    conn = MagicMock()
    conn.__enter__.return_value = conn
    conn.__exit__.return_value = False
    conn.cursor.return_value = cursor
    return {"connect": MagicMock(return_value=conn), "conn": conn, "cursor": cursor}
