from datetime import date, datetime

import pytest

from hr_attendance.core.exceptions import ValidationError

from conftest import ADMIN, checked_in


def at(day, hour, minute=0):
    return datetime(2024, 1, day, hour, minute)


@pytest.fixture
def month(world):
    world.employees.add(2, date(2024, 1, 1), name="Binh")

    checked_in(world, at=at(15, 9, 20), expected=at(15, 9, 0))
    world.service.record_check_out(ADMIN, 1, at(15, 17, 0))
    checked_in(world, at=at(16, 8, 55))
    world.service.record_check_out(ADMIN, 1, at(16, 18, 0), expected_check_out_time=at(16, 17, 0))
    world.service.mark_absent(ADMIN, 1, date(2024, 1, 17))

    checked_in(world, at=at(15, 8, 0), employee_id=2)
    world.service.record_check_out(ADMIN, 2, at(15, 12, 30))
    world.corrections.bulk_mark(ADMIN, employee_ids=[2], work_date=date(2024, 1, 16), status="on_leave")
    return world


def test_summary_per_employee(month):
    report = month.reports.summarize("2024-01-01", "2024-01-31")

    by_id = {s["employee_id"]: s for s in report.summary}
    asha = by_id[1]
    assert asha["full_name"] == "Asha"
    assert asha["days"] == 3
    assert asha["present"] == 2
    assert asha["late"] == 1
    assert asha["absent"] == 1
    assert asha["working_minutes"] == 460 + 545
    assert asha["overtime_minutes"] == 60
    assert asha["total_hours"] == "16:45"

    assert by_id[2]["on_leave"] == 1
    assert [s["employee_id"] for s in report.summary] == [1, 2]


def test_rows_render_times(month):
    report = month.reports.summarize(date(2024, 1, 15), date(2024, 1, 15), employee_id="2")

    [row] = report.rows
    assert row["full_name"] == "Binh"
    assert row["check_in"] == "08:00"
    assert row["check_out"] == "12:30"
    assert row["worked_hours"] == "04:30"


def test_absent_row_has_placeholders(month):
    [row] = month.reports.summarize("2024-01-17", "2024-01-17").rows

    assert row["check_in"] == "-"
    assert row["status"] == "absent"
    assert row["note"] == "Marked absent by admin"


def test_invalid_range(world):
    with pytest.raises(ValidationError, match="on or before"):
        world.reports.summarize("2024-02-01", "2024-01-01")


def test_overtime_listing(month):
    month.corrections.set_overtime(ADMIN, employee_id=2, work_date="2024-01-15", overtime_hours=0.5)
    asha = month.attendance.get_for_employee_and_date(1, date(2024, 1, 16))
    month.corrections.approve_overtime(ADMIN, attendance_id=asha.attendance_id)

    report = month.reports.overtime("2024-01-01", "2024-01-31")

    assert [(e.employee_id, e.work_date.day) for e in report.entries] == [(1, 16), (2, 15)]
    assert report.summary == {
        "total_records": 2,
        "total_overtime_minutes": 90,
        "approved_overtime_minutes": 60,
        "pending_approval_count": 1,
    }

    pending = month.reports.overtime("2024-01-01", "2024-01-31", is_approved="false")
    assert [e.employee_id for e in pending.entries] == [2]
    assert month.reports.overtime("2024-01-16", "2024-01-31", employee_id="2").entries == []


def test_overtime_listing_rejects_bad_flag(world):
    with pytest.raises(ValidationError, match="is_approved"):
        world.reports.overtime("2024-01-01", "2024-01-31", is_approved="maybe")
