"""
Invariants Module — Consistency Checks on Computed Occupancy.

These verify MEANING, not shape. They run in production (the scheduler
calls enforce_invariants before serving an occupancy map) as well as in
tests.

Cross-check: the same count computed two ways must match.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date

from .dates import iter_days, to_date_key
from .errors import InvariantViolation
from .models import DayOccupancy, Stay
from .policy import CapacityPolicy

logger = logging.getLogger(__name__)

OccupancyMap = dict[str, DayOccupancy]


def check_range_coverage(
    result: OccupancyMap, stays: Sequence[Stay], start: date, end: date, policy: CapacityPolicy
) -> None:
    """
    INVARIANT: exactly one entry per date in [start, end], in order, no gaps.

    Raises:
        InvariantViolation: If a date is missing, extra, or out of order
    """
    expected = [to_date_key(d) for d in iter_days(start, end)]
    actual = list(result.keys())
    if actual != expected:
        missing = sorted(set(expected) - set(actual))
        extra = sorted(set(actual) - set(expected))
        raise InvariantViolation(
            f"Occupancy range coverage mismatch: missing={missing[:5]}, extra={extra[:5]}, "
            f"expected {len(expected)} dates, got {len(actual)}"
        )


def check_counts_match(
    result: OccupancyMap, stays: Sequence[Stay], start: date, end: date, policy: CapacityPolicy
) -> None:
    """
    INVARIANT: occupant_count == brute-force interval count == len(occupants).

    Raises:
        InvariantViolation: If any day disagrees
    """
    mismatches = []
    for key, day in result.items():
        brute = sum(1 for s in stays if s.occupies(day.date))
        if day.occupant_count != brute or len(day.occupants) != brute:
            mismatches.append(f"{key}: count={day.occupant_count} occupants={len(day.occupants)} expected={brute}")

    if mismatches:
        raise InvariantViolation(f"Occupant counts mismatch on {len(mismatches)} day(s): {mismatches[:5]}")


def check_arrivals_are_occupants(
    result: OccupancyMap, stays: Sequence[Stay], start: date, end: date, policy: CapacityPolicy
) -> None:
    """
    INVARIANT: every new arrival arrives that day and is counted as an occupant.

    Raises:
        InvariantViolation: If an arrival is misplaced or uncounted
    """
    for key, day in result.items():
        for stay in day.new_arrivals:
            if stay.arrival_date != day.date:
                raise InvariantViolation(
                    f"{key}: stay {stay.patient_id} listed as arrival but arrives {stay.arrival_date}"
                )
            if stay not in day.occupants:
                raise InvariantViolation(f"{key}: arrival {stay.patient_id} missing from occupants")


def check_status_consistent(
    result: OccupancyMap, stays: Sequence[Stay], start: date, end: date, policy: CapacityPolicy
) -> None:
    """
    INVARIANT: status is the policy's band for (occupant_count, new arrivals).

    Raises:
        InvariantViolation: If a status disagrees with the policy
    """
    for key, day in result.items():
        expected = policy.classify(day.occupant_count, len(day.new_arrivals))
        if day.status is not expected:
            raise InvariantViolation(
                f"{key}: status {day.status.value} but policy gives {expected.value} "
                f"for {day.occupant_count} occupant(s)"
            )


ALL_INVARIANTS: list[Callable] = [
    check_range_coverage,
    check_counts_match,
    check_arrivals_are_occupants,
    check_status_consistent,
]


def enforce_invariants(
    result: OccupancyMap,
    stays: Sequence[Stay],
    start: date,
    end: date,
    policy: CapacityPolicy,
) -> list[str]:
    """
    Run all invariants and collect violations.

    Returns:
        List of violation messages (empty if all pass)
    """
    violations = []
    for check in ALL_INVARIANTS:
        try:
            check(result, stays, start, end, policy)
        except InvariantViolation as e:
            violations.append(f"{check.__name__}: {e}")
    return violations


def enforce_invariants_strict(
    result: OccupancyMap,
    stays: Sequence[Stay],
    start: date,
    end: date,
    policy: CapacityPolicy,
) -> None:
    """
    Run all invariants and raise on the first batch of failures.

    Raises:
        InvariantViolation: If any invariant fails
    """
    violations = enforce_invariants(result, stays, start, end, policy)
    if violations:
        logger.error("Occupancy invariants failed: %s", violations)
        raise InvariantViolation(
            f"Invariant violations ({len(violations)}):\n" + "\n".join(f"  - {v}" for v in violations)
        )
