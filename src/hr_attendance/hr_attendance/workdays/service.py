from __future__ import annotations

from datetime import date
from typing import Dict

from ..core.constants import WEEKEND_DAYS
from .repository import HolidayRepository, LeaveRepository


class CalendarGate:
    """Answers whether a date counts as a working day for attendance.

    A working day is a weekday (Mon-Fri) that is not a declared holiday.
    Approved leave is a separate, per-employee question.
    """

    def __init__(self, holidays: HolidayRepository, leaves: LeaveRepository):
        self._holidays = holidays
        self._leaves = leaves

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in WEEKEND_DAYS

    def is_working_day(self, day: date) -> bool:
        if self.is_weekend(day):
            return False
        return not self._holidays.is_holiday(day)

    def is_on_approved_leave(self, employee_id: int, day: date) -> bool:
        return self._leaves.has_approved_leave(employee_id, day)

    def cached(self) -> "CachedCalendarGate":
        return CachedCalendarGate(self)


class CachedCalendarGate:
    """Per-run memo of working-day answers; leave lookups pass through."""

    def __init__(self, gate: CalendarGate):
        self._gate = gate
        self._working: Dict[date, bool] = {}

    def is_working_day(self, day: date) -> bool:
        if day not in self._working:
            self._working[day] = self._gate.is_working_day(day)
        return self._working[day]

    def is_on_approved_leave(self, employee_id: int, day: date) -> bool:
        return self._gate.is_on_approved_leave(employee_id, day)
