"""Facility OS - treatment scheduling and occupancy for a fixed-capacity facility."""

__version__ = "1.0.0"
