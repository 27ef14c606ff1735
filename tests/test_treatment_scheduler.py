"""
Tests for TreatmentScheduler against the seeded fixture DB (today = 2025-03-01).
"""

from datetime import date

import pytest

from facility.occupancy import AssignmentRejected, CapacityStatus, InvalidStayError, PatientNotFound
from facility.scheduling import TreatmentScheduler, calendar_window, default_window
from tests.fixtures import FULL_DAYS


class TestWindows:
    def test_default_window_is_booking_horizon(self):
        assert default_window(date(2025, 3, 1)) == (date(2025, 3, 1), date(2025, 5, 30))

    def test_calendar_window(self):
        assert calendar_window(date(2025, 3, 31)) == (date(2024, 12, 31), date(2026, 3, 31))


class TestOccupancy:
    def test_default_window(self, scheduler, today):
        occupancy, load = scheduler.occupancy()
        assert load.start == today
        assert len(occupancy) == 91

    def test_full_days_flagged(self, scheduler):
        occupancy, _ = scheduler.occupancy("2025-03-01", "2025-03-18")
        full = [k for k, d in occupancy.items() if d.status is CapacityStatus.FULL]
        assert full == FULL_DAYS
        assert occupancy["2025-03-04"].status is CapacityStatus.LIMITED
        assert occupancy["2025-03-12"].status is CapacityStatus.AVAILABLE

    def test_skipped_records_reported(self, scheduler):
        _, load = scheduler.occupancy("2025-03-01", "2025-03-18")
        assert [s.record_id for s in load.skipped] == ["onb-5"]


class TestCheckStay:
    def test_new_patient_into_full_week(self, scheduler):
        check = scheduler.check_stay("2025-03-01", 14)
        assert not check.ok
        assert list(check.conflicting_dates) == FULL_DAYS

    def test_short_stay_before_full_week(self, scheduler):
        assert scheduler.check_stay("2025-03-01", 4).ok

    def test_default_length(self, scheduler):
        assert scheduler.check_stay("2025-03-11").number_of_days == 14


class TestCheckAssignment:
    def test_whole_stay_conflicts(self, scheduler):
        check = scheduler.check_assignment("onb-3", "2025-03-01")
        assert not check.ok
        assert list(check.conflicting_dates) == FULL_DAYS

    def test_after_full_week_fits(self, scheduler):
        assert scheduler.check_assignment("onb-3", "2025-03-12").ok

    def test_redating_excludes_own_stay(self, scheduler):
        # Ben (7 days) moving to 03-04 overlaps the full week he is part of
        assert scheduler.check_assignment("onb-2", "2025-03-04").ok

    def test_unchanged_date_accepted(self, scheduler):
        assert scheduler.check_assignment("onb-1", "2025-03-03").ok

    def test_past_date_rejected(self, scheduler):
        with pytest.raises(AssignmentRejected) as exc:
            scheduler.check_assignment("onb-3", "2025-02-28")
        assert exc.value.reason == "past_date"

    def test_today_allowed(self, scheduler):
        check = scheduler.check_assignment("onb-3", "2025-03-01")
        assert check.arrival_date == date(2025, 3, 1)

    def test_unknown_patient(self, scheduler):
        with pytest.raises(PatientNotFound):
            scheduler.check_assignment("onb-404", "2025-03-12")


class TestAssignTreatmentDate:
    def test_assigns_and_persists(self, scheduler, repository):
        result = scheduler.assign_treatment_date("onb-3", "2025-03-12", "staff-7")
        assert result["message"] == "Treatment date assigned successfully for Cai Wu"
        assert result["onboarding"]["treatment_date"] == "2025-03-12"
        assert result["check"]["ok"] is True

        stored = repository.get_onboarding("onb-3")
        assert stored["treatment_date_assigned_by"] == "staff-7"
        assert stored["treatment_date_assigned_at"]

    def test_assignment_shows_in_occupancy(self, scheduler):
        scheduler.assign_treatment_date("onb-3", "2025-03-12", "staff-7")
        occupancy, _ = scheduler.occupancy("2025-03-12", "2025-03-25")
        assert occupancy["2025-03-12"].occupant_count == 3
        assert occupancy["2025-03-25"].occupant_count == 1

    def test_full_rejected_with_dates(self, scheduler, repository):
        with pytest.raises(AssignmentRejected) as exc:
            scheduler.assign_treatment_date("onb-3", "2025-03-02", "staff-7")
        assert exc.value.reason == "capacity"
        assert exc.value.conflicting_dates == FULL_DAYS
        assert "full capacity (4 patients)" in str(exc.value)
        assert repository.get_onboarding("onb-3")["treatment_date"] is None

    def test_fifth_patient_rejected_after_filling(self, scheduler, repository):
        """Once a gap is taken, the next patient into it is refused."""
        scheduler.assign_treatment_date("onb-3", "2025-03-12", "staff-7")
        conn_rows = [
            {"id": f"onb-x{i}", "patient_id": f"p-x{i}", "treatment_date": "2025-03-13"} for i in range(2)
        ]
        from facility.db import get_connection

        with get_connection(repository.db_path) as conn:
            for row in conn_rows:
                conn.execute(
                    "INSERT INTO patient_onboarding (id, patient_id, treatment_date) VALUES (?, ?, ?)",
                    (row["id"], row["patient_id"], row["treatment_date"]),
                )
            conn.execute("INSERT INTO patient_onboarding (id, patient_id) VALUES ('onb-new', 'p-new')")

        with pytest.raises(AssignmentRejected):
            scheduler.assign_treatment_date("onb-new", "2025-03-13", "staff-7")


class TestNextAvailableDate:
    def test_long_stay_waits_for_full_week(self, scheduler):
        assert scheduler.next_available_date(14) == date(2025, 3, 11)

    def test_short_stay_fits_today(self, scheduler):
        assert scheduler.next_available_date(3) == date(2025, 3, 1)

    def test_none_within_horizon(self, scheduler):
        assert scheduler.next_available_date(14, horizon_days=5) is None

    def test_zero_length_rejected(self, scheduler):
        with pytest.raises(InvalidStayError):
            scheduler.next_available_date(0)

    def test_empty_facility(self, tmp_path, policy):
        from facility.stays import StayRepository

        scheduler = TreatmentScheduler(
            repository=StayRepository(tmp_path / "empty.db"),
            policy=policy,
            today=lambda: date(2025, 6, 1),
        )
        assert scheduler.next_available_date() == date(2025, 6, 1)
