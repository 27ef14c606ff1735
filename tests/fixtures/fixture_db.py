"""
Fixture Database Factory for deterministic scheduling tests.

Creates a temp SQLite DB with the facility schema + seeded patients.
Tests MUST use this fixture, never the live ~/.facility_os database.

Seed (tests/fixtures/facility_seed.json), with "today" = 2025-03-01:

    Ana  onboarding  2025-03-03  10 days (agreement)   03-03..03-12
    Ben  onboarding  2025-03-05   7 days (agreement)   03-05..03-11
    Cai  onboarding  unassigned  14 days (default)
    Dee  management  2025-02-25  14 days, active       02-25..03-10
    Eli  onboarding  "2025-02-30"  not a real date -> skipped
    Fay  management  2025-02-20  discharged 03-02      02-20..03-02
    Gus  management  discharged 2025-01-14 (outside any 2025-03 window)
    Hal  management  2025-03-04  14 days (default)     03-04..03-17

    Occupancy: 03-01..03-03 = 2, 03-04 = 3, 03-05..03-10 = 4 (full),
               03-11 = 3, 03-12 = 2, 03-13..03-17 = 1, 03-18 = 0
"""

import json
import sqlite3
from pathlib import Path
from typing import Any

from facility.db import init_schema

SEED_PATH = Path(__file__).parent / "facility_seed.json"

FULL_DAYS = [f"2025-03-{d:02d}" for d in range(5, 11)]


def load_seed_data() -> dict[str, Any]:
    """Load pinned seed data from facility_seed.json."""
    if not SEED_PATH.exists():
        raise FileNotFoundError(f"Seed data not found: {SEED_PATH}")
    return json.loads(SEED_PATH.read_text())


def _insert(conn: sqlite3.Connection, table: str, row: dict) -> None:
    columns = ", ".join(row.keys())
    placeholders = ", ".join("?" for _ in row)
    conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(row.values()))  # nosec B608


def insert_onboarding(conn: sqlite3.Connection, **row) -> None:
    _insert(conn, "patient_onboarding", row)


def insert_management(conn: sqlite3.Connection, **row) -> None:
    _insert(conn, "patient_management", row)


def insert_agreement(conn: sqlite3.Connection, patient_id: str, number_of_days: int | None) -> None:
    _insert(conn, "service_agreements", {"patient_id": patient_id, "number_of_days": number_of_days})


def create_fixture_db(db_path: Path, seed: dict[str, Any] | None = None) -> sqlite3.Connection:
    """
    Create the schema at db_path and load seed rows.

    Returns an open connection (caller closes).
    """
    seed = load_seed_data() if seed is None else seed
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    init_schema(conn)

    for table in ("service_agreements", "patient_onboarding", "patient_management"):
        for row in seed.get(table, []):
            _insert(conn, table, row)

    conn.commit()
    return conn
