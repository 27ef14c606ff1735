"""
Test configuration — ensures repo root is in sys.path + live DB guard.

This allows tests to import from top-level packages (facility, api, cli).
Every test runs with FACILITY_OS_HOME pointed at a temp directory, and
sqlite3.connect refuses the live database path.
"""

import sqlite3
import sys
from datetime import date
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import facility.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from facility.occupancy import CapacityPolicy, ProgramType, Stay, StaySource  # noqa: E402
from facility.occupancy.dates import parse_date_key  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live database access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".facility_os" / "data" / "facility.db"

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    db_str = str(database)
    if db_str != ":memory:" and db_str == str(HOME_DB_ABSOLUTE):
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {database}.\n"
            "Tests must use fixture_db_path from tests/conftest.py."
        )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def guard_live_db_access(monkeypatch, tmp_path):
    """Automatically isolate all tests from the live home directory and DB."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    monkeypatch.setenv("FACILITY_OS_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("FACILITY_OS_DB", raising=False)
    monkeypatch.delenv("FACILITY_API_TOKEN", raising=False)


# =============================================================================
# SHARED FIXTURES
# =============================================================================

TODAY = date(2025, 3, 1)


@pytest.fixture
def today() -> date:
    """Pinned "today" matching the seed data."""
    return TODAY


@pytest.fixture
def policy() -> CapacityPolicy:
    return CapacityPolicy(capacity=4)


@pytest.fixture
def make_stay():
    """Factory: make_stay("p1", "2025-03-01", 3)."""
    counter = {"n": 0}

    def _make(
        patient_id: str | None = None,
        arrival: str = "2025-03-01",
        days: int = 14,
        program_type: ProgramType | None = None,
        discharged_on: str | None = None,
        first_name: str = "Test",
        last_name: str | None = None,
    ) -> Stay:
        counter["n"] += 1
        patient_id = patient_id or f"p-{counter['n']}"
        return Stay(
            patient_id=patient_id,
            first_name=first_name,
            last_name=last_name or patient_id,
            arrival_date=parse_date_key(arrival),
            number_of_days=days,
            program_type=program_type,
            source=StaySource.MANAGEMENT if discharged_on else StaySource.ONBOARDING,
            discharged_on=parse_date_key(discharged_on) if discharged_on else None,
        )

    return _make


# =============================================================================
# FIXTURE DB FOR INTEGRATION TESTS
# =============================================================================


@pytest.fixture
def fixture_db_path(tmp_path):
    """
    Function-scoped fixture DB seeded from tests/fixtures/facility_seed.json.
    Fresh per test because assignment tests write to it.
    """
    from tests.fixtures.fixture_db import create_fixture_db

    db_path = tmp_path / "fixture_facility.db"
    conn = create_fixture_db(db_path)
    conn.close()
    return db_path


@pytest.fixture
def repository(fixture_db_path):
    from facility.stays import StayRepository

    return StayRepository(fixture_db_path)


@pytest.fixture
def scheduler(repository, policy, today):
    from facility.scheduling import TreatmentScheduler

    return TreatmentScheduler(repository=repository, policy=policy, today=lambda: today)
