from datetime import date, datetime

import pytest

from hr_attendance.core.enums import AttendanceStatus, AuditAction, NoteTag
from hr_attendance.core.exceptions import ConflictError, NotFoundError, ValidationError

from conftest import ADMIN, checked_in

DAY = date(2024, 1, 15)


def at(hour, minute=0):
    return datetime(2024, 1, 15, hour, minute)


@pytest.fixture
def closed_day(world):
    checked_in(world, at=at(9, 0))
    return world.service.record_check_out(ADMIN, 1, at(17, 0))


def test_edit_check_in_recomputes_lateness_and_hours(world, closed_day):
    record = world.corrections.edit_check_in(
        ADMIN,
        attendance_id=closed_day.attendance_id,
        check_in_time="09:25",
        expected_check_in_time="09:00",
    )

    assert record.check_in == at(9, 25)
    assert record.is_late is True
    assert record.late_minutes == 25
    assert record.working_minutes == 455
    assert record.status == AttendanceStatus.LATE

    entry = world.audit.entries[-1]
    assert entry.action_type == AuditAction.UPDATE
    assert entry.old_values["check_in"] == "2024-01-15T09:00:00"
    assert entry.new_values["check_in"] == "2024-01-15T09:25:00"
    assert entry.reason == "Admin edited check-in time"


def test_edit_check_in_must_stay_before_check_out(world, closed_day):
    with pytest.raises(ValidationError, match="must be after check-in"):
        world.corrections.edit_check_in(ADMIN, employee_id=1, work_date=DAY, check_in_time=at(17, 30))


def test_edit_check_out_syncs_overtime(world, closed_day):
    record = world.corrections.edit_check_out(
        ADMIN, employee_id=1, work_date="2024-01-15", check_out_time="19:00", expected_check_out_time="17:00"
    )

    assert record.overtime_minutes == 120
    assert world.attendance.overtime[record.attendance_id].overtime_minutes == 120

    record = world.corrections.edit_check_out(
        ADMIN, employee_id=1, work_date="2024-01-15", check_out_time="17:00", expected_check_out_time="17:00"
    )

    assert record.overtime_minutes == 0
    assert record.attendance_id not in world.attendance.overtime


def test_edit_check_out_requires_check_in(world):
    world.service.mark_absent(ADMIN, 1, DAY)

    with pytest.raises(ValidationError, match="without a check-in"):
        world.corrections.edit_check_out(ADMIN, employee_id=1, work_date=DAY, check_out_time="17:00")


def test_edit_break(world, closed_day):
    record = world.corrections.edit_break(ADMIN, attendance_id=closed_day.attendance_id, break_duration_hours="1.5")

    assert record.break_minutes == 90
    assert world.audit.entries[-1].reason == "Admin edited break duration"


def test_negative_break_is_rejected(world, closed_day):
    with pytest.raises(ValidationError, match="cannot be negative"):
        world.corrections.edit_break(ADMIN, attendance_id=closed_day.attendance_id, break_duration_hours=-1)


def test_add_break_appends_note_and_break_row(world):
    checked_in(world, at=at(9, 0))

    record = world.corrections.add_break(
        ADMIN, employee_id=1, work_date=DAY, break_type="lunch", duration_hours=0.75, reason="team lunch"
    )

    assert record.break_minutes == 45
    assert record.notes[-1].tag == NoteTag.BREAK
    assert record.notes_text == "Break: lunch - 45m (team lunch)"
    [entry] = world.attendance.breaks
    assert entry.duration_minutes == 45
    assert entry.reason == "team lunch"
    assert world.audit.entries[-1].reason == "Admin added break: lunch - 45m"


def test_add_break_accumulates(world):
    checked_in(world, at=at(9, 0))
    world.corrections.add_break(ADMIN, employee_id=1, work_date=DAY, break_type="tea", duration_hours=0.25)

    record = world.corrections.add_break(ADMIN, employee_id=1, work_date=DAY, break_type="lunch", duration_hours=1)

    assert record.break_minutes == 75
    assert record.notes_text == "Break: tea - 15m\nBreak: lunch - 1h"


def test_add_break_after_check_out_is_rejected(world, closed_day):
    with pytest.raises(ValidationError, match="after check-out"):
        world.corrections.add_break(ADMIN, employee_id=1, work_date=DAY, break_type="tea", duration_hours=0.5)


def test_add_break_requires_positive_duration(world):
    checked_in(world, at=at(9, 0))

    with pytest.raises(ValidationError):
        world.corrections.add_break(ADMIN, employee_id=1, work_date=DAY, break_type="tea", duration_hours=0)


def test_set_overtime(world, closed_day):
    record = world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=2)

    assert record.overtime_minutes == 120
    assert world.attendance.overtime[record.attendance_id].overtime_minutes == 120
    assert world.audit.entries[-1].reason == "Admin added/edited overtime hours"


def test_set_overtime_to_zero_removes_tracking(world, closed_day):
    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=2)

    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=0)

    assert world.attendance.overtime == {}


def test_approve_overtime(world, closed_day):
    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=2)

    entry = world.corrections.approve_overtime(ADMIN, attendance_id=closed_day.attendance_id)

    assert entry.is_approved is True
    assert entry.approved_by == ADMIN.actor_id
    assert entry.approved_at == world.clock.now
    assert world.attendance.overtime[closed_day.attendance_id] == entry

    audit = world.audit.entries[-1]
    assert audit.action_type == AuditAction.UPDATE
    assert audit.attendance_id == closed_day.attendance_id
    assert audit.reason == "Admin approved overtime: 2h"


def test_overtime_resync_keeps_approval(world, closed_day):
    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=2)
    world.corrections.approve_overtime(ADMIN, attendance_id=closed_day.attendance_id, reason="ok'd by lead")

    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=3)

    entry = world.attendance.overtime[closed_day.attendance_id]
    assert entry.overtime_minutes == 180
    assert entry.is_approved is True
    assert entry.approved_by == ADMIN.actor_id


def test_approve_overtime_twice_conflicts(world, closed_day):
    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=1)
    world.corrections.approve_overtime(ADMIN, attendance_id=closed_day.attendance_id)

    with pytest.raises(ConflictError, match="already approved"):
        world.corrections.approve_overtime(ADMIN, attendance_id=closed_day.attendance_id)


def test_approve_overtime_without_tracking_row(world, closed_day):
    audit_count = len(world.audit.entries)

    with pytest.raises(NotFoundError, match="Overtime tracking record not found"):
        world.corrections.approve_overtime(ADMIN, attendance_id=closed_day.attendance_id)
    with pytest.raises(NotFoundError):
        world.corrections.approve_overtime(ADMIN, attendance_id=999)

    assert len(world.audit.entries) == audit_count


def test_update_record_keeps_derived_flags(world):
    checked_in(world, at=at(9, 20), expected=at(9, 0))
    world.service.record_check_out(ADMIN, 1, at(17, 0))

    record = world.corrections.update_record(
        ADMIN, employee_id=1, work_date=DAY, check_in="08:00", notes="Corrected after badge audit"
    )

    assert record.check_in == at(8, 0)
    assert record.working_minutes == 540
    assert record.is_late is True
    assert record.late_minutes == 20
    assert record.notes_text == "Corrected after badge audit"


def test_update_record_rejects_absent_with_times(world, closed_day):
    with pytest.raises(ValidationError, match="absent record"):
        world.corrections.update_record(ADMIN, attendance_id=closed_day.attendance_id, status="absent")


def test_update_record_rejects_unknown_status(world, closed_day):
    with pytest.raises(ValidationError, match="Invalid status"):
        world.corrections.update_record(ADMIN, attendance_id=closed_day.attendance_id, status="vacation")


def test_resolve_requires_an_identifier(world):
    with pytest.raises(ValidationError, match="attendance_id or employee_id"):
        world.corrections.edit_break(ADMIN, employee_id=1, break_duration_hours=1)


def test_missing_record(world):
    with pytest.raises(NotFoundError, match="Attendance record not found"):
        world.corrections.set_overtime(ADMIN, attendance_id=999, overtime_hours=1)


def test_delete_record_audits_before_removal(world, closed_day):
    world.corrections.set_overtime(ADMIN, attendance_id=closed_day.attendance_id, overtime_hours=1)

    deleted = world.corrections.delete_record(ADMIN, attendance_id=closed_day.attendance_id, reason="Duplicate")

    assert deleted.attendance_id == closed_day.attendance_id
    assert world.attendance.records == {}
    assert world.attendance.overtime == {}
    entry = world.audit.entries[-1]
    assert entry.action_type == AuditAction.DELETE
    assert entry.new_values is None
    assert entry.old_values["attendance_id"] == closed_day.attendance_id
    assert entry.reason == "Duplicate"
    assert len(world.audit_trail.history(closed_day.attendance_id)) == 4


def test_bulk_mark_collects_failures(world):
    world.employees.add(2, date(2024, 1, 1))
    checked_in(world, at=at(9, 0), employee_id=2)

    result = world.corrections.bulk_mark(ADMIN, employee_ids=[1, 2, 404, "abc"], work_date=DAY, status="absent")

    assert [r.employee_id for r in result.marked] == [1, 2]
    assert all(r.check_in is None for r in result.marked)
    assert [f["employee_id"] for f in result.failed] == [404, "abc"]
    body = result.to_dict()
    assert body["total_processed"] == 4
    assert body["message"] == "Bulk attendance marked: 2 successful, 2 failed"
    actions = [e.action_type for e in world.audit.entries if e.reason == "Bulk attendance marking"]
    assert actions == [AuditAction.CREATE, AuditAction.UPDATE]


def test_bulk_mark_on_leave(world):
    [record] = world.corrections.bulk_mark(ADMIN, employee_ids=[1], work_date=DAY, status="on_leave").marked

    assert record.status == AttendanceStatus.ON_LEAVE


def test_bulk_mark_rejects_derived_statuses(world):
    with pytest.raises(ValidationError, match="present, absent or on_leave"):
        world.corrections.bulk_mark(ADMIN, employee_ids=[1], work_date=DAY, status="late")


def test_bulk_mark_requires_employees(world):
    with pytest.raises(ValidationError, match="employee_ids is required"):
        world.corrections.bulk_mark(ADMIN, employee_ids=[], work_date=DAY)
