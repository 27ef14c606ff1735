"""
Centralized Database Access for Facility OS.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema creation

ALL code must use this module for DB access. No direct sqlite3.connect() elsewhere.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from facility import paths

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# ============================================================
# SCHEMA
# ============================================================

SCHEMA = """
CREATE TABLE IF NOT EXISTS patient_onboarding (
    id TEXT PRIMARY KEY,
    patient_id TEXT,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    program_type TEXT,
    treatment_date TEXT,
    status TEXT NOT NULL DEFAULT 'in_progress',
    treatment_date_assigned_by TEXT,
    treatment_date_assigned_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_onboarding_treatment_date
    ON patient_onboarding(treatment_date);

CREATE TABLE IF NOT EXISTS patient_management (
    id TEXT PRIMARY KEY,
    patient_id TEXT,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    program_type TEXT,
    arrival_date TEXT,
    program_duration INTEGER,
    status TEXT NOT NULL DEFAULT 'active',
    discharged_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_management_status
    ON patient_management(status);

CREATE TABLE IF NOT EXISTS service_agreements (
    patient_id TEXT PRIMARY KEY,
    number_of_days INTEGER
);
"""


# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path. ALL code must use this.

    Resolution order:
    1. FACILITY_OS_DB env var (explicit override)
    2. ~/.facility_os/data/facility.db (default via paths.db_path())
    """
    return paths.db_path()


# ============================================================
# CONNECTION FACTORY
# ============================================================


@contextmanager
def get_connection(
    db_path: Path | None = None,
    row_factory: bool = True,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Usage:
        with get_connection() as conn:
            conn.execute(...)
    """
    db_path = db_path or get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    if row_factory:
        conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def init_schema(conn: sqlite3.Connection) -> dict:
    """
    Create tables and indexes if missing. Safe to call multiple times.

    Returns a results dict for logging.
    """
    previous_version = get_schema_version(conn)
    conn.executescript(SCHEMA)
    conn.execute(f"PRAGMA user_version = {int(SCHEMA_VERSION)}")
    logger.info("Schema ready (version %s -> %s)", previous_version, SCHEMA_VERSION)
    return {"previous_version": previous_version, "version": SCHEMA_VERSION}
