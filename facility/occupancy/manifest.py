"""
Day manifests — who is in the facility on a given day.
"""

from collections.abc import Iterable

from .dates import DateLike, coerce_date, iter_days, to_date_key
from .engine import days_remaining, estimated_discharge_date
from .models import ClientOnDay, ProgramType, Stay

PROGRAM_LABELS = {
    ProgramType.NEUROLOGICAL: "Neurological",
    ProgramType.MENTAL_HEALTH: "Mental Health",
    ProgramType.ADDICTION: "Addiction",
}


def format_program_type(program_type: ProgramType | str | None) -> str:
    """Display label for a program. Unknown strings pass through unchanged."""
    if not program_type:
        return "—"
    if isinstance(program_type, str):
        known = ProgramType.from_value(program_type)
        if known is None:
            return program_type
        program_type = known
    return PROGRAM_LABELS[program_type]


def _client_on(stay: Stay, day) -> ClientOnDay:
    return ClientOnDay(
        patient_id=stay.patient_id,
        first_name=stay.first_name,
        last_name=stay.last_name,
        program_type=stay.program_type,
        arrival_date=stay.arrival_date,
        number_of_days=stay.number_of_days,
        days_left=days_remaining(stay.arrival_date, stay.number_of_days, day),
        estimated_discharge=estimated_discharge_date(stay.arrival_date, stay.number_of_days),
    )


def day_manifest(stays: Iterable[Stay], day: DateLike) -> list[ClientOnDay]:
    """Clients present on day, earliest arrival first."""
    d = coerce_date(day)
    present = [s for s in stays if s.occupies(d)]
    present.sort(key=lambda s: (s.arrival_date, s.last_name, s.first_name))
    return [_client_on(s, d) for s in present]


def build_clients_by_date(
    stays: Iterable[Stay],
    range_start: DateLike,
    range_end: DateLike,
) -> dict[str, list[ClientOnDay]]:
    """Manifest for every date in range. Dates with nobody map to []."""
    start = coerce_date(range_start)
    end = coerce_date(range_end)
    by_date: dict[str, list[ClientOnDay]] = {to_date_key(d): [] for d in iter_days(start, end)}

    for stay in sorted(stays, key=lambda s: (s.arrival_date, s.last_name, s.first_name)):
        for d in iter_days(max(stay.arrival_date, start), min(stay.occupied_through, end)):
            by_date[to_date_key(d)].append(_client_on(stay, d))

    return by_date
