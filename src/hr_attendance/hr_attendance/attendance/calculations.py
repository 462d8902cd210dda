"""Pure derived-field rules shared by live operations and corrections."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from ..common.datetime_utils import floor_minutes
from ..core.constants import ALERT_HIGH_SEVERITY_MINUTES, DEFAULT_OVERTIME_RATE
from ..core.enums import AlertSeverity, AttendanceStatus
from ..core.exceptions import ValidationError
from .model import AttendanceRecord, OvertimeEntry


def working_minutes(check_in: datetime, check_out: datetime) -> int:
    return floor_minutes(check_out - check_in)


def require_checkout_after_checkin(check_in: datetime, check_out: datetime) -> None:
    if check_out <= check_in:
        raise ValidationError("Check-out time must be after check-in time")


def require_within_window(
    actual: datetime,
    expected: datetime,
    *,
    earliest: timedelta,
    latest: timedelta,
    label: str,
) -> None:
    if actual < expected - earliest or actual > expected + latest:
        raise ValidationError(
            f"{label} time {actual:%Y-%m-%d %H:%M} is outside the allowed window "
            f"({expected - earliest:%H:%M} - {expected + latest:%H:%M})"
        )


def status_for(*, is_late: bool, is_early_departure: bool = False) -> AttendanceStatus:
    """Early departure outranks lateness; otherwise late, else present."""
    if is_early_departure:
        return AttendanceStatus.EARLY_DEPARTURE
    if is_late:
        return AttendanceStatus.LATE
    return AttendanceStatus.PRESENT


def severity_for(minutes: int) -> AlertSeverity:
    return AlertSeverity.HIGH if minutes > ALERT_HIGH_SEVERITY_MINUTES else AlertSeverity.MEDIUM


def overtime_entry_for(record: AttendanceRecord) -> OvertimeEntry:
    """Tracking row for a record's overtime; new entries start unapproved."""
    return OvertimeEntry(
        attendance_id=record.attendance_id,
        employee_id=record.employee_id,
        work_date=record.work_date,
        overtime_minutes=record.overtime_minutes,
        overtime_rate=Decimal(DEFAULT_OVERTIME_RATE),
        is_approved=False,
    )
