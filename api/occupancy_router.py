"""
Occupancy API Router — Facility OS

Exposes treatment scheduling and facility occupancy via REST:
  - Occupancy by date (calendar and assignment dialog)
  - Month calendar grid
  - Day manifest (who is in, days left, estimated discharge)
  - Whole-stay assignment check and treatment-date assignment
  - Next available date

Usage in server.py:
    from api.occupancy_router import occupancy_router
    app.include_router(occupancy_router, prefix="/api/v1")
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from api.auth import require_auth
from api.response_models import (
    AssignmentCheckRequest,
    AssignTreatmentDateRequest,
    ErrorResponse,
    OccupancyEnvelope,
)
from facility import config
from facility.occupancy import (
    AssignmentRejected,
    InvalidDateError,
    InvalidStayError,
    PatientNotFound,
    build_clients_by_date,
    calendar_grid,
    compute_occupancy_by_date,
    day_manifest,
    parse_date_key,
    to_date_key,
)
from facility.scheduling import TreatmentScheduler, calendar_window, default_window

logger = logging.getLogger(__name__)

occupancy_router = APIRouter(
    tags=["Occupancy"],
    dependencies=[Depends(require_auth)],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)

_scheduler: TreatmentScheduler | None = None


def get_scheduler() -> TreatmentScheduler:
    """Lazily build the shared scheduler. Overridden in tests."""
    global _scheduler  # noqa: PLW0603
    if _scheduler is None:
        _scheduler = TreatmentScheduler()
    return _scheduler


def _wrap(data, params=None):
    return {
        "status": "ok",
        "data": data,
        "computed_at": datetime.now().isoformat(),
        "params": params or {},
    }


def _error(status_code: int, error_code: str, message: str, conflicting_dates=None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "status": "error",
            "error": message,
            "error_code": error_code,
            "conflicting_dates": list(conflicting_dates or []),
        },
    )


def _bounded_window(scheduler: TreatmentScheduler, start: str | None, end: str | None):
    """Resolve start/end (defaulting to the booking window) and cap the span at MAX_WINDOW_DAYS."""
    default_start, default_end = default_window(scheduler.today())
    try:
        first = parse_date_key(start) if start else default_start
        last = parse_date_key(end) if end else default_end
    except InvalidDateError as e:
        raise _error(422, "invalid_date", str(e)) from e

    span = (last - first).days + 1
    if span > config.MAX_WINDOW_DAYS:
        raise _error(
            422,
            "window_too_large",
            f"Window of {span} days exceeds the maximum of {config.MAX_WINDOW_DAYS}",
        )
    return first, last


# =============================================================================
# OCCUPANCY
# =============================================================================


@occupancy_router.get("/occupancy", response_model=OccupancyEnvelope)
def get_occupancy(
    start: str | None = Query(None, description="First date, yyyy-MM-dd (default today)"),
    end: str | None = Query(None, description="Last date, yyyy-MM-dd (default today + horizon)"),
    calendar: bool = Query(False, description="Default to the calendar window (3 months back, 12 ahead)"),
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """Occupant count, new arrivals and capacity status for every date in range."""
    if calendar:
        cal_start, cal_end = calendar_window(scheduler.today())
        start = start or to_date_key(cal_start)
        end = end or to_date_key(cal_end)
    first, last = _bounded_window(scheduler, start, end)
    try:
        occupancy, load = scheduler.occupancy(first, last)
    except InvalidDateError as e:
        raise _error(422, "invalid_date", str(e)) from e

    return _wrap(
        {
            "policy": scheduler.policy.to_dict(),
            "days": [day.to_dict() for day in occupancy.values()],
            "skipped": load.to_dict()["skipped"],
        },
        {"start": to_date_key(load.start), "end": to_date_key(load.end)},
    )


@occupancy_router.get("/occupancy/clients", response_model=OccupancyEnvelope)
def get_clients_by_date(
    start: str = Query(..., description="First date, yyyy-MM-dd"),
    end: str = Query(..., description="Last date, yyyy-MM-dd"),
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """Manifest for every date in range, keyed by date."""
    first, last = _bounded_window(scheduler, start, end)
    try:
        load = scheduler.load(first, last)
    except InvalidDateError as e:
        raise _error(422, "invalid_date", str(e)) from e

    clients = build_clients_by_date(load.stays, load.start, load.end)
    return _wrap(
        {key: [c.to_dict() for c in day] for key, day in clients.items()},
        {"start": start, "end": end},
    )


@occupancy_router.get("/occupancy/calendar/{month}", response_model=OccupancyEnvelope)
def get_month_calendar(
    month: str,
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """Monday-first month grid (yyyy-MM) with per-day counts and status."""
    try:
        anchor = parse_date_key(f"{month}-01")
    except InvalidDateError as e:
        raise _error(422, "invalid_date", f"Invalid month (expected yyyy-MM): {month!r}") from e

    try:
        weeks = calendar_grid(anchor)
    except OverflowError as e:
        raise _error(422, "invalid_date", f"Month out of range: {month!r}") from e
    load = scheduler.load(weeks[0][0], weeks[-1][-1])
    occupancy = compute_occupancy_by_date(load.stays, weeks[0][0], weeks[-1][-1], scheduler.policy)
    today = scheduler.today()

    grid = [
        [
            {
                "date": to_date_key(d),
                "in_month": d.month == anchor.month,
                "is_past": d < today,
                "occupant_count": occupancy[to_date_key(d)].occupant_count,
                "status": occupancy[to_date_key(d)].status.value,
                "remaining": scheduler.policy.remaining(occupancy[to_date_key(d)].occupant_count),
                "names": [s.full_name for s in occupancy[to_date_key(d)].occupants],
            }
            for d in week
        ]
        for week in weeks
    ]
    return _wrap({"capacity": scheduler.policy.capacity, "weeks": grid}, {"month": month})


@occupancy_router.get("/occupancy/{day}/manifest", response_model=OccupancyEnvelope)
def get_day_manifest(
    day: str,
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """Clients in the facility on a day with days left and estimated discharge."""
    try:
        d = parse_date_key(day)
    except InvalidDateError as e:
        raise _error(422, "invalid_date", str(e)) from e

    load = scheduler.load(d, d)
    clients = day_manifest(load.stays, d)
    return _wrap(
        {
            "date": day,
            "occupant_count": len(clients),
            "remaining": scheduler.policy.remaining(len(clients)),
            "capacity": scheduler.policy.capacity,
            "clients": [c.to_dict() for c in clients],
        },
        {"day": day},
    )


# =============================================================================
# ASSIGNMENT
# =============================================================================


@occupancy_router.post("/assignments/check", response_model=OccupancyEnvelope)
def check_assignment(
    body: AssignmentCheckRequest,
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """Would a new stay fit on every day? Full days are listed, not raised."""
    try:
        check = scheduler.check_stay(body.arrival_date, body.number_of_days)
    except (InvalidDateError, InvalidStayError) as e:
        raise _error(422, "invalid_stay", str(e)) from e
    return _wrap(check.to_dict(), body.model_dump())


@occupancy_router.post("/onboarding/{onboarding_id}/treatment-date", response_model=OccupancyEnvelope)
def assign_treatment_date(
    onboarding_id: str,
    body: AssignTreatmentDateRequest,
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """Assign a treatment date after checking capacity across the whole stay."""
    try:
        result = scheduler.assign_treatment_date(onboarding_id, body.treatment_date, body.assigned_by)
    except (InvalidDateError, InvalidStayError) as e:
        raise _error(422, "invalid_date", str(e)) from e
    except PatientNotFound as e:
        raise _error(404, "patient_not_found", str(e)) from e
    except AssignmentRejected as e:
        raise _error(409, e.reason, str(e), e.conflicting_dates) from e
    except Exception as e:
        logger.exception("assign_treatment_date failed")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return _wrap(result, {"onboarding_id": onboarding_id, **body.model_dump()})


@occupancy_router.get("/next-available", response_model=OccupancyEnvelope)
def next_available(
    number_of_days: int | None = Query(None, ge=1, description="Stay length (default 14)"),
    horizon_days: int | None = Query(None, ge=0, description="Search horizon in days"),
    scheduler: TreatmentScheduler = Depends(get_scheduler),
):
    """First date from today on which a stay of the given length fits."""
    found = scheduler.next_available_date(number_of_days, horizon_days)
    return _wrap(
        {"date": to_date_key(found) if found else None},
        {"number_of_days": number_of_days, "horizon_days": horizon_days},
    )
