"""
Test fixtures for deterministic testing.

This module provides:
- fixture_db: Creates temp SQLite databases with pinned seed data
- facility_seed.json: Pinned patients that define the expected occupancy
"""

from .fixture_db import FULL_DAYS, create_fixture_db, insert_agreement, insert_management, insert_onboarding

__all__ = ["FULL_DAYS", "create_fixture_db", "insert_agreement", "insert_management", "insert_onboarding"]
