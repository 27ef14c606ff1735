"""
Occupancy Engine — per-day facility occupancy and whole-stay capacity checks.

Pure functions over a caller-supplied snapshot of stays. No I/O, no caching:
callers refetch stays and recompute on every change.

Invariants:
- occupant_count(d) == number of stays with arrival_date <= d <= occupied_through
- Every date in the query range has exactly one entry
- A candidate stay is assignable iff every day of it stays within capacity
"""

from collections.abc import Iterable
from datetime import date

from .dates import DateLike, add_days, coerce_date, days_between, iter_days, to_date_key
from .errors import InvalidStayError
from .models import AssignmentCheck, DayOccupancy, Stay
from .policy import DEFAULT_POLICY, CapacityPolicy, classify_status

__all__ = [
    "classify_status",
    "compute_occupancy_by_date",
    "days_remaining",
    "estimated_discharge_date",
    "validate_stay_assignment",
]


def compute_occupancy_by_date(
    stays: Iterable[Stay],
    range_start: DateLike,
    range_end: DateLike,
    policy: CapacityPolicy | None = None,
) -> dict[str, DayOccupancy]:
    """
    Occupancy for every date in [range_start, range_end], keyed by date key.

    Each stay is walked one calendar day at a time from its arrival date.
    Days outside the range are skipped; days inside bump the count and, on
    the arrival day, record the stay as a new arrival.

    Returns an empty mapping when range_start > range_end.
    """
    policy = policy or DEFAULT_POLICY
    start = coerce_date(range_start)
    end = coerce_date(range_end)

    by_date: dict[str, DayOccupancy] = {
        to_date_key(d): DayOccupancy(date=d) for d in iter_days(start, end)
    }
    if not by_date:
        return by_date

    for stay in stays:
        # Only the part of the stay overlapping the range is walked
        first = max(stay.arrival_date, start)
        last = min(stay.occupied_through, end)
        for d in iter_days(first, last):
            day = by_date[to_date_key(d)]
            day.occupant_count += 1
            day.occupants.append(stay)
            if d == stay.arrival_date:
                day.new_arrivals.append(stay)

    for day in by_date.values():
        day.status = policy.classify(day.occupant_count, len(day.new_arrivals))

    return by_date


def validate_stay_assignment(
    stays: Iterable[Stay],
    candidate_arrival: DateLike,
    candidate_number_of_days: int,
    capacity: int | None = None,
    exclude_patient_id: str | None = None,
) -> AssignmentCheck:
    """
    Check a proposed stay against capacity on every day it would occupy.

    Checking only the arrival day lets a stay run into a full week later on;
    every conflicting day is returned so a scheduler can see the whole
    picture.

    Args:
        stays: Current stays
        candidate_arrival: Proposed arrival (date or yyyy-MM-dd)
        candidate_number_of_days: Proposed stay length, >= 1
        capacity: Beds per day (defaults to the configured policy)
        exclude_patient_id: Ignore this patient's existing stays (re-dating)

    Raises:
        InvalidStayError: If candidate_number_of_days < 1
        InvalidDateError: If candidate_arrival is not a valid date key
    """
    arrival = coerce_date(candidate_arrival)
    days = candidate_number_of_days
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise InvalidStayError(
            f"Stay must last at least one day, got {candidate_number_of_days!r}"
        )
    if capacity is None:
        capacity = DEFAULT_POLICY.capacity

    if exclude_patient_id is not None:
        stays = [s for s in stays if s.patient_id != exclude_patient_id]

    last_day = add_days(arrival, candidate_number_of_days - 1)
    occupancy = compute_occupancy_by_date(stays, arrival, last_day, CapacityPolicy(capacity=capacity))

    conflicts = tuple(key for key, day in occupancy.items() if day.occupant_count + 1 > capacity)
    return AssignmentCheck(
        ok=not conflicts,
        arrival_date=arrival,
        number_of_days=candidate_number_of_days,
        conflicting_dates=conflicts,
    )


def estimated_discharge_date(arrival_date: DateLike, number_of_days: int) -> date:
    """Last planned day of a stay (the day the client departs)."""
    if number_of_days < 1:
        raise InvalidStayError(f"Stay must last at least one day, got {number_of_days!r}")
    return add_days(coerce_date(arrival_date), number_of_days - 1)


def days_remaining(arrival_date: DateLike, number_of_days: int, as_of: DateLike) -> int:
    """
    Days left after as_of until the last planned day. 0 means departs today.

    Never negative: any as_of on or after the last day gives 0.
    """
    last_day = estimated_discharge_date(arrival_date, number_of_days)
    return max(0, days_between(last_day, coerce_date(as_of)))
