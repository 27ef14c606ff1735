"""
Occupancy errors.

Fullness is not an error: a day at capacity is reported through
AssignmentCheck. Exceptions here cover malformed input and refused
scheduling requests.
"""


class OccupancyError(Exception):
    """Base class for all occupancy errors."""

    pass


class InvalidDateError(OccupancyError, ValueError):
    """Raised when a date key is not a real yyyy-MM-dd calendar date."""

    pass


class InvalidStayError(OccupancyError, ValueError):
    """Raised when a stay is structurally impossible (length < 1, discharge before arrival)."""

    pass


class InvalidPolicyError(OccupancyError):
    """Raised when a capacity policy has out-of-range values."""

    pass


class InvariantViolation(OccupancyError):
    """Raised when a computed occupancy map fails a consistency check."""

    pass


class PatientNotFound(OccupancyError):
    """Raised when an onboarding record does not exist."""

    def __init__(self, onboarding_id: str):
        super().__init__(f"Patient not found: {onboarding_id}")
        self.onboarding_id = onboarding_id


class AssignmentRejected(OccupancyError):
    """
    Raised when a treatment date cannot be assigned.

    reason is one of:
        past_date  - requested date is before today
        capacity   - at least one day of the stay is full
    """

    def __init__(self, reason: str, message: str, conflicting_dates: list[str] | None = None):
        super().__init__(message)
        self.reason = reason
        self.conflicting_dates = conflicting_dates or []
