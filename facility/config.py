"""
Centralized configuration for Facility OS.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Capacity
# ============================================================

DAILY_CAPACITY: int = int(os.environ.get("FACILITY_DAILY_CAPACITY", "4"))
"""Beds available per calendar day. A capacity key in config/capacity.yaml overrides it."""

DEFAULT_STAY_DAYS: int = int(os.environ.get("FACILITY_DEFAULT_STAY_DAYS", "14"))
"""Stay length used when neither the management record nor a service agreement has one."""

# ============================================================
# Calendar
# ============================================================

FACILITY_TIMEZONE: str = os.environ.get("FACILITY_TIMEZONE", "UTC")
"""IANA zone the facility operates in. Decides what "today" is."""

BOOKING_HORIZON_DAYS: int = int(os.environ.get("FACILITY_BOOKING_HORIZON_DAYS", "90"))
"""Default query window and next-available search horizon, in days from today."""

MAX_WINDOW_DAYS: int = int(os.environ.get("FACILITY_MAX_WINDOW_DAYS", "800"))
"""Longest start..end range, inclusive, the occupancy endpoints will compute."""

CALENDAR_LOOKBACK_MONTHS: int = 3
CALENDAR_LOOKAHEAD_MONTHS: int = 12
"""Occupancy calendar loads one wide window so paging months needs no refetch."""

# ============================================================
# Service
# ============================================================

LOG_LEVEL: str = os.environ.get("FACILITY_LOG_LEVEL", "INFO")
"""Root log level for the CLI and API. The API token (FACILITY_API_TOKEN) is read per request in api.auth."""
