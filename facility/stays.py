"""
Stay Source — rebuild Stays from patient records.

Two kinds of records occupy beds:
- patient_onboarding rows with an assigned treatment_date (future arrivals)
- patient_management rows (admitted; active, or discharged inside the window)

Stay length resolution:
    management:  program_duration -> service agreement -> DEFAULT_STAY_DAYS
    onboarding:  service agreement -> DEFAULT_STAY_DAYS

Records that cannot form a valid stay are skipped with a reason. They are
never coerced into one: a zero-day stay or an unparseable date is reported,
not guessed at.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from facility import config
from facility.db import get_connection, init_schema
from facility.occupancy.dates import coerce_date, date_from_timestamp, parse_date_key, to_date_key
from facility.occupancy.errors import InvalidDateError, InvalidStayError
from facility.occupancy.models import ProgramType, Stay, StaySource

logger = logging.getLogger(__name__)

MOVED_TO_MANAGEMENT = "moved_to_management"


@dataclass(frozen=True)
class SkippedRecord:
    """A patient record that could not be turned into a stay."""

    table: str
    record_id: str
    reason: str


@dataclass
class StayLoad:
    """Stays for a window plus the records that were rejected."""

    start: date
    end: date
    stays: list[Stay] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "start": to_date_key(self.start),
            "end": to_date_key(self.end),
            "stays": [s.to_dict() for s in self.stays],
            "skipped": [
                {"table": s.table, "record_id": s.record_id, "reason": s.reason} for s in self.skipped
            ],
        }


def _resolve_days(*candidates: int | None) -> int:
    """First non-null length wins; fall back to the default stay length."""
    for value in candidates:
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidStayError(f"Stay length must be an integer, got {value!r}")
        return value
    return config.DEFAULT_STAY_DAYS


def stay_from_onboarding(row: dict, agreement_days: int | None = None) -> Stay:
    """
    Build a future-arrival stay from an onboarding row.

    Raises:
        InvalidDateError: If treatment_date is not a yyyy-MM-dd key
        InvalidStayError: If the resolved length is < 1
    """
    return Stay(
        patient_id=row.get("patient_id") or row["id"],
        record_id=row["id"],
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        program_type=ProgramType.from_value(row.get("program_type")),
        arrival_date=parse_date_key(row["treatment_date"]),
        number_of_days=_resolve_days(agreement_days),
        source=StaySource.ONBOARDING,
    )


def stay_from_management(row: dict, agreement_days: int | None = None) -> Stay:
    """
    Build an admitted stay from a management row.

    A discharged row's discharge date replaces the planned last day.

    Raises:
        InvalidDateError: If arrival_date or discharged_at is malformed
        InvalidStayError: If the length is < 1 or discharge precedes arrival
    """
    discharged_on = None
    if row.get("status") == "discharged" and row.get("discharged_at"):
        discharged_on = date_from_timestamp(row["discharged_at"])

    return Stay(
        patient_id=row.get("patient_id") or row["id"],
        record_id=row["id"],
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        program_type=ProgramType.from_value(row.get("program_type")),
        arrival_date=parse_date_key(row["arrival_date"]),
        number_of_days=_resolve_days(row.get("program_duration"), agreement_days),
        source=StaySource.MANAGEMENT,
        discharged_on=discharged_on,
    )


class StayRepository:
    """
    Reads stays from, and writes treatment dates to, the facility database.

    Responsibilities:
    - Load every stay that can touch a date window
    - Resolve stay lengths from service agreements
    - Look up and update onboarding records
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path
        self._schema_ready = False

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        with get_connection(self.db_path) as conn:
            if not self._schema_ready:
                init_schema(conn)
                self._schema_ready = True
            yield conn

    def _query(self, conn: sqlite3.Connection, sql: str, params: list | tuple = ()) -> list[dict]:
        return [dict(row) for row in conn.execute(sql, params).fetchall()]

    def _agreement_days(self, conn: sqlite3.Connection, patient_ids: list[str]) -> dict[str, int]:
        ids = sorted({pid for pid in patient_ids if pid})
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        rows = self._query(
            conn,
            f"SELECT patient_id, number_of_days FROM service_agreements WHERE patient_id IN ({placeholders})",  # nosec B608 - placeholders only
            ids,
        )
        return {r["patient_id"]: r["number_of_days"] for r in rows if r["number_of_days"] is not None}

    def load_stays(self, start: date | str, end: date | str) -> StayLoad:
        """
        Load every stay that may occupy a day in [start, end].

        Candidates are onboarding bookings arriving on or before end, all
        active admissions, and admissions discharged on or after start. A
        booking that arrived before start still counts if it runs into the
        window, so candidates are kept only when their stay overlaps it.
        """
        start = coerce_date(start)
        end = coerce_date(end)
        start_key, end_key = to_date_key(start), to_date_key(end)
        load = StayLoad(start=start, end=end)

        with self._connect() as conn:
            onboarding = self._query(
                conn,
                """
                SELECT id, patient_id, first_name, last_name, program_type, treatment_date, status
                FROM patient_onboarding
                WHERE treatment_date IS NOT NULL
                  AND treatment_date <= ?
                  AND status != ?
                ORDER BY treatment_date ASC
                """,
                (end_key, MOVED_TO_MANAGEMENT),
            )
            admitted = self._query(
                conn,
                """
                SELECT id, patient_id, first_name, last_name, program_type,
                       arrival_date, program_duration, status, discharged_at
                FROM patient_management
                WHERE arrival_date IS NOT NULL
                  AND (status = 'active' OR (status = 'discharged' AND discharged_at >= ?))
                ORDER BY arrival_date ASC
                """,
                (start_key,),
            )
            agreements = self._agreement_days(
                conn, [r["patient_id"] for r in onboarding] + [r["patient_id"] for r in admitted]
            )

        for table, rows, build in (
            ("patient_onboarding", onboarding, stay_from_onboarding),
            ("patient_management", admitted, stay_from_management),
        ):
            for row in rows:
                try:
                    stay = build(row, agreements.get(row.get("patient_id")))
                except (InvalidDateError, InvalidStayError) as e:
                    logger.warning("Skipping %s %s: %s", table, row["id"], e)
                    load.skipped.append(SkippedRecord(table=table, record_id=row["id"], reason=str(e)))
                    continue
                if stay.arrival_date <= end and stay.occupied_through >= start:
                    load.stays.append(stay)

        logger.debug(
            "Loaded %d stays for %s..%s (%d skipped)",
            len(load.stays),
            start_key,
            end_key,
            len(load.skipped),
        )
        return load

    def get_onboarding(self, onboarding_id: str) -> dict | None:
        with self._connect() as conn:
            rows = self._query(conn, "SELECT * FROM patient_onboarding WHERE id = ?", (onboarding_id,))
        return rows[0] if rows else None

    def onboarding_stay_length(self, onboarding: dict) -> int:
        """Stay length the patient would book: service agreement or default."""
        with self._connect() as conn:
            agreements = self._agreement_days(conn, [onboarding.get("patient_id")])
        return _resolve_days(agreements.get(onboarding.get("patient_id")))

    def update_treatment_date(
        self,
        onboarding_id: str,
        treatment_date: date,
        assigned_by: str,
        assigned_at: datetime,
    ) -> dict | None:
        """Persist an assigned treatment date. Returns the updated row."""
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE patient_onboarding
                SET treatment_date = ?, treatment_date_assigned_by = ?, treatment_date_assigned_at = ?
                WHERE id = ?
                """,
                (to_date_key(treatment_date), assigned_by, assigned_at.isoformat(), onboarding_id),
            )
            rows = self._query(
                conn,
                "SELECT id, first_name, last_name, treatment_date FROM patient_onboarding WHERE id = ?",
                (onboarding_id,),
            )
        return rows[0] if rows else None
