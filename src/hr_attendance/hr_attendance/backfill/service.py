from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Callable, ContextManager, List, Optional

from ..attendance.calculations import working_minutes
from ..attendance.model import AttendanceRecord, NoteEntry
from ..attendance.repository import AttendanceRepository
from ..audit.service import AuditTrail
from ..common.datetime_utils import at_time, coerce_date, iter_days, now_local
from ..core.actor import SYSTEM_ACTOR
from ..core.constants import (
    AUTO_LOCATION,
    AUTO_LOCATION_BACKFILL,
    AUTO_NOTE,
    AUTO_NOTE_BACKFILL,
    DEFAULT_WORK_END,
    DEFAULT_WORK_START,
    REASON_AUTO_MARK,
    REASON_BACKFILL,
)
from ..core.enums import AttendanceStatus, AuditAction, NoteTag
from ..core.exceptions import ConflictError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from ..workdays.service import CalendarGate, CachedCalendarGate

logger = logging.getLogger(__name__)


@dataclass
class EmployeeBackfillSummary:
    employee_id: int
    employee_name: str
    start_date: date
    end_date: date
    processed: int = 0
    skipped: int = 0
    already_exists: int = 0

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "processed": self.processed,
            "skipped": self.skipped,
            "already_exists": self.already_exists,
        }


@dataclass
class BackfillSummary:
    total_employees: int = 0
    processed: int = 0
    skipped: int = 0
    already_exists: int = 0
    work_date: Optional[date] = None
    working_day: bool = True
    employees: List[EmployeeBackfillSummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_employees": self.total_employees,
            "processed": self.processed,
            "skipped": self.skipped,
            "already_exists": self.already_exists,
            "work_date": self.work_date.isoformat() if self.work_date else None,
            "working_day": self.working_day,
            "employees": [e.to_dict() for e in self.employees],
        }


class BackfillService:
    """Synthesizes default attendance for elapsed working days with no record.

    For each (employee, date) in ascending order: dates before the employee
    existed and non-working days are skipped, an existing record is left
    alone, approved leave wins, and otherwise an 08:00-17:00 ``present``
    record is written under the system actor. Today is never touched.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeDirectory,
        calendar: CalendarGate,
        audit: AuditTrail,
        *,
        transaction: Callable[[], ContextManager] = nullcontext,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._employees = employees
        self._calendar = calendar
        self._audit = audit
        self._transaction = transaction
        self._clock = clock

    def backfill_all(self, today: Optional[date] = None) -> BackfillSummary:
        today = today or self._clock().date()
        yesterday = today - timedelta(days=1)
        calendar = self._calendar.cached()

        employees = list(self._employees.list_for_backfill())
        summary = BackfillSummary(total_employees=len(employees))
        logger.info("Backfill started: %s employees through %s", len(employees), yesterday)

        for employee in employees:
            try:
                emp_summary = self._backfill_employee(employee, yesterday, calendar)
            except Exception:
                # One malformed employee must not stop the batch.
                logger.exception("Backfill aborted for employee %s", employee.employee_id)
                summary.skipped += 1
                continue
            summary.employees.append(emp_summary)
            summary.processed += emp_summary.processed
            summary.skipped += emp_summary.skipped
            summary.already_exists += emp_summary.already_exists

        logger.info(
            "Backfill finished: processed=%s skipped=%s already_exists=%s",
            summary.processed, summary.skipped, summary.already_exists,
        )
        return summary

    def mark_day(self, target_date: Optional[date] = None, today: Optional[date] = None) -> BackfillSummary:
        today = today or self._clock().date()
        target = coerce_date(target_date, "target_date") if target_date else today - timedelta(days=1)
        if target >= today:
            raise ValidationError("Only days that have fully elapsed can be auto-marked")
        return self._mark_day(target, self._calendar.cached())

    def mark_range(self, start: object, end: object, today: Optional[date] = None) -> List[BackfillSummary]:
        today = today or self._clock().date()
        start_day = coerce_date(start, "start_date")
        end_day = coerce_date(end, "end_date")
        if start_day > end_day:
            raise ValidationError("start_date must be on or before end_date")
        if end_day >= today:
            raise ValidationError("end_date must be before today")

        calendar = self._calendar.cached()
        return [self._mark_day(day, calendar) for day in iter_days(start_day, end_day)]

    def _mark_day(self, day: date, calendar: CachedCalendarGate) -> BackfillSummary:
        if not calendar.is_working_day(day):
            logger.info("Auto-mark skipped %s: not a working day", day)
            return BackfillSummary(work_date=day, working_day=False)

        employees = list(self._employees.list_for_backfill())
        summary = BackfillSummary(total_employees=len(employees), work_date=day)
        for employee in employees:
            try:
                outcome = self._reconcile(employee, day, calendar, backfill=False)
            except Exception:
                logger.exception("Auto-mark failed for employee %s on %s", employee.employee_id, day)
                outcome = "skipped"
            _count(summary, outcome)

        logger.info(
            "Auto-mark %s: processed=%s skipped=%s already_exists=%s",
            day, summary.processed, summary.skipped, summary.already_exists,
        )
        return summary

    def _backfill_employee(
        self, employee: Employee, yesterday: date, calendar: CachedCalendarGate
    ) -> EmployeeBackfillSummary:
        start = self._employees.creation_date(employee.employee_id)
        if start is None:
            raise ValidationError(f"Employee {employee.employee_id} has no creation date")
        emp_summary = EmployeeBackfillSummary(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            start_date=start,
            end_date=yesterday,
        )
        for day in iter_days(start, yesterday):
            try:
                outcome = self._reconcile(employee, day, calendar, backfill=True)
            except Exception:
                logger.exception("Backfill failed for employee %s on %s", employee.employee_id, day)
                outcome = "skipped"
            _count(emp_summary, outcome)
        return emp_summary

    def _reconcile(self, employee: Employee, day: date, calendar: CachedCalendarGate, *, backfill: bool) -> str:
        if day < employee.creation_date:
            return "skipped"
        if not calendar.is_working_day(day):
            return "skipped"
        if self._attendance.get_for_employee_and_date(employee.employee_id, day) is not None:
            return "already_exists"
        if calendar.is_on_approved_leave(employee.employee_id, day):
            return "skipped"

        record = _synthesize(employee.employee_id, day, backfill=backfill)
        try:
            with self._transaction():
                record = replace(record, attendance_id=self._attendance.insert(record))
                self._audit.record(
                    SYSTEM_ACTOR,
                    AuditAction.CREATE,
                    before=None,
                    after=record,
                    reason=REASON_BACKFILL if backfill else REASON_AUTO_MARK,
                )
        except ConflictError:
            # A live check-in won the race for this (employee, date).
            return "already_exists"
        return "processed"


def _synthesize(employee_id: int, day: date, *, backfill: bool) -> AttendanceRecord:
    check_in = at_time(day, DEFAULT_WORK_START)
    check_out = at_time(day, DEFAULT_WORK_END)
    return AttendanceRecord(
        attendance_id=None,
        employee_id=employee_id,
        work_date=day,
        check_in=check_in,
        check_out=check_out,
        working_minutes=working_minutes(check_in, check_out),
        status=AttendanceStatus.PRESENT,
        location=AUTO_LOCATION_BACKFILL if backfill else AUTO_LOCATION,
        notes=(NoteEntry(NoteTag.SYSTEM, AUTO_NOTE_BACKFILL if backfill else AUTO_NOTE),),
        is_manual_entry=True,
    )


def _count(summary, outcome: str) -> None:
    if outcome == "processed":
        summary.processed += 1
    elif outcome == "already_exists":
        summary.already_exists += 1
    else:
        summary.skipped += 1
