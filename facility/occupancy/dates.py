"""
Local calendar-date helpers.

Every occupancy computation works on datetime.date values: a year/month/day
with no time and no zone. Day arithmetic on dates cannot drift across a
timezone offset, so a stay arriving 2025-01-30 always covers 01-30..02-03
whatever the host clock says.

Date keys (yyyy-MM-dd) are the only string form accepted. Parsing is strict:
"2025-3-1", "2025-02-30" and "2025-03-01T00:00:00Z" are all rejected.
"""

import calendar
import re
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from facility import config

from .errors import InvalidDateError

_DATE_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

DateLike = date | str


def parse_date_key(value: str) -> date:
    """Parse a yyyy-MM-dd key into a calendar date."""
    if not isinstance(value, str):
        raise InvalidDateError(f"Date key must be a string, got {type(value).__name__}")
    match = _DATE_KEY_RE.match(value.strip())
    if not match:
        raise InvalidDateError(f"Invalid date key (expected yyyy-MM-dd): {value!r}")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(f"Invalid calendar date {value!r}: {e}") from e


def to_date_key(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def coerce_date(value: DateLike) -> date:
    """
    Accept a date or a date key.

    A datetime contributes its own wall-clock date; it is never converted
    between zones first.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date_key(value)


def date_from_timestamp(value: str) -> date:
    """
    Calendar date of a stored timestamp such as "2025-03-04T18:30:00+00:00".

    The date part is taken literally, with no zone conversion.
    """
    if not isinstance(value, str) or not value:
        raise InvalidDateError(f"Invalid timestamp: {value!r}")
    return parse_date_key(value.strip()[:10])


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def days_between(later: date, earlier: date) -> int:
    """Signed number of calendar days from earlier to later."""
    return (later - earlier).days


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date in [start, end], inclusive. Empty if start > end."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_bounds(d: date) -> tuple[date, date]:
    """First and last day of d's month."""
    last = calendar.monthrange(d.year, d.month)[1]
    return date(d.year, d.month, 1), date(d.year, d.month, last)


def calendar_grid(d: date) -> list[list[date]]:
    """
    Monday-first weeks covering d's month, padded with the neighbouring
    months' days so each week has seven entries.
    """
    first, last = month_bounds(d)
    grid_start = first - timedelta(days=first.weekday())
    grid_end = last + timedelta(days=6 - last.weekday())
    days = list(iter_days(grid_start, grid_end))
    return [days[i : i + 7] for i in range(0, len(days), 7)]


def today_local(tz_name: str | None = None) -> date:
    """Today's date in the facility timezone."""
    tz_name = tz_name or config.FACILITY_TIMEZONE
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidDateError(f"Unknown timezone: {tz_name}") from e
    return datetime.now(tz).date()
