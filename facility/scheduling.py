"""
Treatment Scheduler - assign arrival dates against facility capacity.

Tracks:
- Occupancy for a date window (calendar and assignment views)
- Whether a patient can be booked on a date for their whole stay
- The next date a stay of a given length fits
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone

from facility import config
from facility.occupancy.dates import (
    DateLike,
    add_days,
    add_months,
    coerce_date,
    iter_days,
    to_date_key,
    today_local,
)
from facility.occupancy.engine import compute_occupancy_by_date, validate_stay_assignment
from facility.occupancy.errors import AssignmentRejected, InvalidStayError, PatientNotFound
from facility.occupancy.invariants import enforce_invariants_strict
from facility.occupancy.models import AssignmentCheck, DayOccupancy
from facility.occupancy.policy import CapacityPolicy
from facility.stays import StayLoad, StayRepository

logger = logging.getLogger(__name__)


def default_window(today: date) -> tuple[date, date]:
    """Booking window: today through the booking horizon."""
    return today, add_days(today, config.BOOKING_HORIZON_DAYS)


def calendar_window(today: date) -> tuple[date, date]:
    """Occupancy calendar window: a few months back, a year ahead."""
    return (
        add_months(today, -config.CALENDAR_LOOKBACK_MONTHS),
        add_months(today, config.CALENDAR_LOOKAHEAD_MONTHS),
    )


class TreatmentScheduler:
    """
    Schedules treatment dates.

    Responsibilities:
    - Load stays for a window and compute occupancy
    - Validate an assignment over the whole stay, not just arrival day
    - Persist accepted assignments
    - Find the next assignable date
    """

    def __init__(
        self,
        repository: StayRepository | None = None,
        policy: CapacityPolicy | None = None,
        today: Callable[[], date] = today_local,
    ):
        self.repository = repository or StayRepository()
        self.policy = policy or CapacityPolicy.load()
        self._today = today

    def today(self) -> date:
        return self._today()

    def load(self, start: DateLike | None = None, end: DateLike | None = None) -> StayLoad:
        default_start, default_end = default_window(self.today())
        start = coerce_date(start) if start is not None else default_start
        end = coerce_date(end) if end is not None else default_end
        return self.repository.load_stays(start, end)

    def occupancy(
        self, start: DateLike | None = None, end: DateLike | None = None
    ) -> tuple[dict[str, DayOccupancy], StayLoad]:
        """
        Occupancy for [start, end] (defaults to the booking window).

        Returns the occupancy map and the stay load it was computed from.
        """
        load = self.load(start, end)
        result = compute_occupancy_by_date(load.stays, load.start, load.end, self.policy)
        enforce_invariants_strict(result, load.stays, load.start, load.end, self.policy)
        return result, load

    def check_stay(self, arrival_date: DateLike, number_of_days: int | None = None) -> AssignmentCheck:
        """Whole-stay capacity check for a new patient (no existing booking)."""
        arrival = coerce_date(arrival_date)
        number_of_days = config.DEFAULT_STAY_DAYS if number_of_days is None else number_of_days
        load = self.repository.load_stays(arrival, add_days(arrival, max(number_of_days, 1) - 1))
        return validate_stay_assignment(
            load.stays, arrival, number_of_days, capacity=self.policy.capacity
        )

    def check_assignment(self, onboarding_id: str, treatment_date: DateLike) -> AssignmentCheck:
        """
        Whole-stay capacity check for booking a patient on treatment_date.

        The patient's own current booking is ignored so re-dating a patient
        does not count them twice. An unchanged date is accepted as-is.

        Raises:
            PatientNotFound: If the onboarding record does not exist
            AssignmentRejected: If treatment_date is in the past
        """
        requested = coerce_date(treatment_date)
        onboarding = self.repository.get_onboarding(onboarding_id)
        if onboarding is None:
            raise PatientNotFound(onboarding_id)

        today = self.today()
        if requested < today:
            raise AssignmentRejected(
                "past_date",
                f"Treatment date {to_date_key(requested)} cannot be in the past",
            )

        number_of_days = self.repository.onboarding_stay_length(onboarding)

        if onboarding.get("treatment_date") == to_date_key(requested):
            return AssignmentCheck(ok=True, arrival_date=requested, number_of_days=number_of_days)

        load = self.repository.load_stays(requested, add_days(requested, number_of_days - 1))
        return validate_stay_assignment(
            load.stays,
            requested,
            number_of_days,
            capacity=self.policy.capacity,
            exclude_patient_id=onboarding.get("patient_id") or onboarding_id,
        )

    def assign_treatment_date(
        self, onboarding_id: str, treatment_date: DateLike, assigned_by: str
    ) -> dict:
        """
        Assign a treatment date after a whole-stay capacity check.

        Raises:
            PatientNotFound: If the onboarding record does not exist
            AssignmentRejected: If the date is past or any day of the stay is full
        """
        check = self.check_assignment(onboarding_id, treatment_date)
        if not check.ok:
            logger.info(
                "Rejected treatment date %s for %s: full on %s",
                to_date_key(check.arrival_date),
                onboarding_id,
                ", ".join(check.conflicting_dates),
            )
            raise AssignmentRejected(
                "capacity",
                f"Facility is at full capacity ({self.policy.capacity} patients) on "
                f"{len(check.conflicting_dates)} day(s) of the requested stay. "
                "Please select another date.",
                list(check.conflicting_dates),
            )

        row = self.repository.update_treatment_date(
            onboarding_id,
            check.arrival_date,
            assigned_by,
            datetime.now(timezone.utc),
        )
        logger.info(
            "Assigned treatment date %s to %s (by %s)",
            to_date_key(check.arrival_date),
            onboarding_id,
            assigned_by,
        )
        return {
            "onboarding": row,
            "check": check.to_dict(),
            "message": f"Treatment date assigned successfully for "
            f"{row['first_name']} {row['last_name']}".strip(),
        }

    def next_available_date(
        self,
        number_of_days: int | None = None,
        horizon_days: int | None = None,
    ) -> date | None:
        """
        First date from today on which a new stay of number_of_days fits.

        Returns None if nothing within the horizon fits.
        """
        number_of_days = config.DEFAULT_STAY_DAYS if number_of_days is None else number_of_days
        if number_of_days < 1:
            raise InvalidStayError(f"Stay must last at least one day, got {number_of_days!r}")
        horizon_days = config.BOOKING_HORIZON_DAYS if horizon_days is None else horizon_days
        today = self.today()
        last_arrival = add_days(today, horizon_days)

        load = self.repository.load_stays(today, add_days(last_arrival, number_of_days - 1))
        for candidate in iter_days(today, last_arrival):
            check = validate_stay_assignment(
                load.stays, candidate, number_of_days, capacity=self.policy.capacity
            )
            if check.ok:
                return candidate

        logger.info("No %d-day slot within %d days of %s", number_of_days, horizon_days, today)
        return None
