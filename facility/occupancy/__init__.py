"""
Occupancy Module

Per-day facility occupancy, capacity bands, and whole-stay assignment checks.

Objects:
- Stay (arrival date + length, optionally cut short by discharge)
- DayOccupancy (occupant count, new arrivals, status for one date)
- CapacityPolicy (daily capacity, LIMITED threshold)

Invariants:
- occupant_count(d) == |{stays covering d}|
- status never drops as occupant_count rises
- A stay is assignable only if every day of it is under capacity
"""

from .dates import calendar_grid, parse_date_key, to_date_key, today_local
from .engine import (
    classify_status,
    compute_occupancy_by_date,
    days_remaining,
    estimated_discharge_date,
    validate_stay_assignment,
)
from .errors import (
    AssignmentRejected,
    InvalidDateError,
    InvalidPolicyError,
    InvalidStayError,
    InvariantViolation,
    OccupancyError,
    PatientNotFound,
)
from .manifest import build_clients_by_date, day_manifest, format_program_type
from .models import (
    AssignmentCheck,
    CapacityStatus,
    ClientOnDay,
    DayOccupancy,
    ProgramType,
    Stay,
    StaySource,
)
from .policy import CapacityPolicy

__all__ = [
    # Engine
    "compute_occupancy_by_date",
    "classify_status",
    "validate_stay_assignment",
    "days_remaining",
    "estimated_discharge_date",
    # Manifest
    "build_clients_by_date",
    "day_manifest",
    "format_program_type",
    # Dates
    "parse_date_key",
    "to_date_key",
    "today_local",
    "calendar_grid",
    # Models
    "Stay",
    "StaySource",
    "ProgramType",
    "DayOccupancy",
    "CapacityStatus",
    "AssignmentCheck",
    "ClientOnDay",
    "CapacityPolicy",
    # Errors
    "OccupancyError",
    "InvalidDateError",
    "InvalidStayError",
    "InvalidPolicyError",
    "InvariantViolation",
    "PatientNotFound",
    "AssignmentRejected",
]
