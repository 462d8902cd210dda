from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..shifts.repository import ShiftRepository
from .strategies.base import ExpectationStrategy
from .strategies.explicit_strategy import ExplicitTimeStrategy
from .strategies.shift_strategy import ShiftStrategy
from .strategies.unscheduled_strategy import UnscheduledStrategy


@dataclass
class ExpectationStrategyFactory:
    """Factory Pattern: choose how a check-in/out is judged.

    Precedence is an explicit expected time from the caller, then the
    employee's active shift for the work date, then nothing.
    """

    shifts: ShiftRepository

    def resolve(self, *, employee_id: int, work_date: date, expected: Optional[datetime] = None) -> ExpectationStrategy:
        if expected is not None:
            return ExplicitTimeStrategy(expected)

        assignment = self.shifts.get_active_assignment(employee_id, work_date)
        if assignment and assignment.shift.start_time is not None:
            return ShiftStrategy(assignment.shift)
        return UnscheduledStrategy()
