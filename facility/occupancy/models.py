"""
Occupancy domain models.

Stays are rebuilt from patient records on every query; DayOccupancy and the
manifest types are computed views and never stored.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .dates import add_days, to_date_key
from .errors import InvalidStayError

# =============================================================================
# ENUMS
# =============================================================================


class ProgramType(Enum):
    """Treatment program a patient is enrolled in."""

    NEUROLOGICAL = "neurological"
    MENTAL_HEALTH = "mental_health"
    ADDICTION = "addiction"

    @classmethod
    def from_value(cls, value: str | None) -> "ProgramType | None":
        """Map a stored program string; unknown or empty values become None."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class StaySource(Enum):
    """Where a stay was reconstructed from."""

    ONBOARDING = "onboarding"  # assigned treatment date, not yet arrived
    MANAGEMENT = "management"  # admitted (active or discharged)


class CapacityStatus(Enum):
    """Capacity band of a single day. Ordered by severity."""

    AVAILABLE = "available"
    LIMITED = "limited"
    FULL = "full"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    CapacityStatus.AVAILABLE: 0,
    CapacityStatus.LIMITED: 1,
    CapacityStatus.FULL: 2,
}


# =============================================================================
# STAY
# =============================================================================


@dataclass(frozen=True)
class Stay:
    """
    A patient's continuous occupancy of the facility.

    A stay of number_of_days = N covers exactly N calendar days starting at
    arrival_date. discharged_on, when set, replaces the planned last day.
    """

    patient_id: str
    first_name: str
    last_name: str
    arrival_date: date
    number_of_days: int
    program_type: ProgramType | None = None
    source: StaySource = StaySource.ONBOARDING
    discharged_on: date | None = None
    record_id: str | None = None

    def __post_init__(self):
        days = self.number_of_days
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidStayError(
                f"Stay for {self.patient_id} must last at least one day, got {self.number_of_days!r}"
            )
        if self.discharged_on is not None and self.discharged_on < self.arrival_date:
            raise InvalidStayError(
                f"Stay for {self.patient_id} discharged {self.discharged_on} "
                f"before arrival {self.arrival_date}"
            )

    @property
    def last_day(self) -> date:
        """Planned last day, inclusive."""
        return add_days(self.arrival_date, self.number_of_days - 1)

    @property
    def occupied_through(self) -> date:
        """Actual last occupied day, inclusive."""
        return self.discharged_on if self.discharged_on is not None else self.last_day

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def occupies(self, d: date) -> bool:
        return self.arrival_date <= d <= self.occupied_through

    def to_dict(self) -> dict:
        return {
            "patient_id": self.patient_id,
            "record_id": self.record_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "program_type": self.program_type.value if self.program_type else None,
            "arrival_date": to_date_key(self.arrival_date),
            "number_of_days": self.number_of_days,
            "last_day": to_date_key(self.last_day),
            "discharged_on": to_date_key(self.discharged_on) if self.discharged_on else None,
            "source": self.source.value,
        }


# =============================================================================
# COMPUTED VIEWS
# =============================================================================


@dataclass
class DayOccupancy:
    """Occupancy of one calendar day."""

    date: date
    occupant_count: int = 0
    status: CapacityStatus = CapacityStatus.AVAILABLE
    new_arrivals: list[Stay] = field(default_factory=list)
    occupants: list[Stay] = field(default_factory=list)

    @property
    def key(self) -> str:
        return to_date_key(self.date)

    def to_dict(self) -> dict:
        return {
            "date": self.key,
            "occupant_count": self.occupant_count,
            "status": self.status.value,
            "new_arrivals": [s.to_dict() for s in self.new_arrivals],
            "occupants": [s.patient_id for s in self.occupants],
        }


@dataclass(frozen=True)
class AssignmentCheck:
    """Result of a whole-stay capacity check."""

    ok: bool
    arrival_date: date
    number_of_days: int
    conflicting_dates: tuple[str, ...] = ()

    @property
    def last_day(self) -> date:
        return add_days(self.arrival_date, self.number_of_days - 1)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "arrival_date": to_date_key(self.arrival_date),
            "number_of_days": self.number_of_days,
            "last_day": to_date_key(self.last_day),
            "conflicting_dates": list(self.conflicting_dates),
        }


@dataclass(frozen=True)
class ClientOnDay:
    """One row of a day manifest."""

    patient_id: str
    first_name: str
    last_name: str
    program_type: ProgramType | None
    arrival_date: date
    number_of_days: int
    days_left: int
    estimated_discharge: date

    @property
    def departs_today(self) -> bool:
        return self.days_left == 0

    @property
    def days_left_label(self) -> str:
        if self.days_left == 0:
            return "Departs today"
        return f"{self.days_left} day{'' if self.days_left == 1 else 's'} left"

    def to_dict(self) -> dict:
        from .manifest import format_program_type

        return {
            "patient_id": self.patient_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "program_type": self.program_type.value if self.program_type else None,
            "program_label": format_program_type(self.program_type),
            "arrival_date": to_date_key(self.arrival_date),
            "number_of_days": self.number_of_days,
            "days_left": self.days_left,
            "days_left_label": self.days_left_label,
            "estimated_discharge": to_date_key(self.estimated_discharge),
        }
