#!/usr/bin/env python3
"""
Facility OS CLI - treatment scheduling and occupancy from the terminal.

Commands:
- init-db
- occupancy        per-day counts and status for a window
- manifest DAY     who is in on a day
- check ARRIVAL    whole-stay capacity check for a new patient
- assign ID DATE   assign a treatment date to an onboarding patient
- next-available   first date a stay fits
- serve            run the API server
"""

import argparse
import json
import logging
import sys

from facility import db as db_module
from facility.observability import RequestContext, configure_logging
from facility.occupancy import (
    AssignmentRejected,
    CapacityStatus,
    InvalidDateError,
    InvalidStayError,
    OccupancyError,
    day_manifest,
    format_program_type,
    parse_date_key,
    to_date_key,
)
from facility.scheduling import TreatmentScheduler, calendar_window

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    CapacityStatus.AVAILABLE: "\033[92m",  # Green
    CapacityStatus.LIMITED: "\033[93m",  # Yellow
    CapacityStatus.FULL: "\033[91m",  # Red
}
RESET = "\033[0m"


def print_header(text: str):
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def cmd_init_db(args, scheduler: TreatmentScheduler):
    with db_module.get_connection() as conn:
        result = db_module.init_schema(conn)
    print(f"OK: schema v{result['version']} at {db_module.get_db_path()}")
    return 0


def cmd_occupancy(args, scheduler: TreatmentScheduler):
    start, end = args.start, args.end
    if args.calendar:
        cal_start, cal_end = calendar_window(scheduler.today())
        start, end = start or cal_start, end or cal_end
    occupancy, load = scheduler.occupancy(start, end)

    if args.json:
        print(json.dumps([day.to_dict() for day in occupancy.values()], indent=2))
        return 0

    cap = scheduler.policy.capacity
    print_header(f"Occupancy {to_date_key(load.start)} → {to_date_key(load.end)}")
    rows = []
    for key, day in occupancy.items():
        color = STATUS_COLORS[day.status]
        arrivals = ", ".join(s.full_name for s in day.new_arrivals)
        rows.append([key, f"{day.occupant_count}/{cap}", f"{color}{day.status.value}{RESET}", arrivals])
    print_table(["Date", "Beds", "Status", "Arrivals"], rows, [10, 5, 18, 40])
    if load.skipped:
        print(f"\n{len(load.skipped)} record(s) skipped (invalid dates or lengths)")
    return 0


def cmd_manifest(args, scheduler: TreatmentScheduler):
    day = parse_date_key(args.day)
    load = scheduler.load(day, day)
    clients = day_manifest(load.stays, day)

    if args.json:
        print(json.dumps([c.to_dict() for c in clients], indent=2))
        return 0

    print_header(f"{day.strftime('%A, %B %d, %Y')} — {len(clients)}/{scheduler.policy.capacity}")
    if not clients:
        print("No clients in the facility.")
        return 0
    print_table(
        ["Client", "Treatment", "Est. discharge", "Left"],
        [
            [
                f"{c.first_name} {c.last_name}",
                format_program_type(c.program_type),
                c.estimated_discharge.strftime("%b %d, %Y"),
                c.days_left_label,
            ]
            for c in clients
        ],
    )
    return 0


def cmd_check(args, scheduler: TreatmentScheduler):
    check = scheduler.check_stay(args.arrival, args.days)
    if args.json:
        print(json.dumps(check.to_dict(), indent=2))
    elif check.ok:
        print(f"OK: {check.number_of_days}-day stay from {args.arrival} fits")
    else:
        print(f"FULL on {len(check.conflicting_dates)} day(s): {', '.join(check.conflicting_dates)}")
    return 0 if check.ok else 1


def cmd_assign(args, scheduler: TreatmentScheduler):
    try:
        result = scheduler.assign_treatment_date(args.onboarding_id, args.date, args.by)
    except AssignmentRejected as e:
        print(f"REJECTED ({e.reason}): {e}")
        for d in e.conflicting_dates:
            print(f"  - {d}")
        return 1
    print(result["message"])
    return 0


def cmd_next_available(args, scheduler: TreatmentScheduler):
    found = scheduler.next_available_date(args.days, args.horizon)
    if found is None:
        print("No date available within the booking horizon")
        return 1
    print(to_date_key(found))
    return 0


def cmd_serve(args, scheduler: TreatmentScheduler):
    import uvicorn

    uvicorn.run("api.server:app", host=args.host, port=args.port)
    return 0


COMMANDS = {
    "init-db": cmd_init_db,
    "occupancy": cmd_occupancy,
    "manifest": cmd_manifest,
    "check": cmd_check,
    "assign": cmd_assign,
    "next-available": cmd_next_available,
    "serve": cmd_serve,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="facility-os", description="Facility occupancy and treatment scheduling")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db")

    o = sub.add_parser("occupancy")
    o.add_argument("--start", help="First date, yyyy-MM-dd (default today)")
    o.add_argument("--end", help="Last date, yyyy-MM-dd (default today + horizon)")
    o.add_argument("--calendar", action="store_true", help="Default to the calendar window (3 months back, 12 ahead)")
    o.add_argument("--json", action="store_true")

    m = sub.add_parser("manifest")
    m.add_argument("day", help="yyyy-MM-dd")
    m.add_argument("--json", action="store_true")

    c = sub.add_parser("check")
    c.add_argument("arrival", help="Proposed arrival, yyyy-MM-dd")
    c.add_argument("--days", type=int, default=None, help="Stay length (default 14)")
    c.add_argument("--json", action="store_true")

    a = sub.add_parser("assign")
    a.add_argument("onboarding_id")
    a.add_argument("date", help="Treatment date, yyyy-MM-dd")
    a.add_argument("--by", required=True, help="Staff user id")

    n = sub.add_parser("next-available")
    n.add_argument("--days", type=int, default=None, help="Stay length (default 14)")
    n.add_argument("--horizon", type=int, default=None, help="Days ahead to search")

    s = sub.add_parser("serve")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8420)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        with RequestContext(prefix="cli"):
            return COMMANDS[args.cmd](args, TreatmentScheduler())
    except (InvalidDateError, InvalidStayError) as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except OccupancyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
