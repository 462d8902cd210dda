from __future__ import annotations

from datetime import date
from typing import Protocol


class HolidayRepository(Protocol):
    def is_holiday(self, day: date) -> bool:
        raise NotImplementedError


class LeaveRepository(Protocol):
    def has_approved_leave(self, employee_id: int, day: date) -> bool:
        raise NotImplementedError
