from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ..core.constants import (
    DEFAULT_EARLY_DEPARTURE_THRESHOLD,
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_OVERTIME_START_AFTER_MINUTES,
)


@dataclass(frozen=True)
class Shift:
    """Domain entity: a work shift with its tolerance windows."""

    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    grace_period_minutes: int = DEFAULT_GRACE_PERIOD_MINUTES
    early_departure_threshold: int = DEFAULT_EARLY_DEPARTURE_THRESHOLD
    overtime_start_after_minutes: int = DEFAULT_OVERTIME_START_AFTER_MINUTES
    break_minutes: int = 0


@dataclass(frozen=True)
class ShiftAssignment:
    employee_id: int
    shift: Shift
    effective_from: date
    effective_to: Optional[date] = None

    def covers(self, day: date) -> bool:
        if day < self.effective_from:
            return False
        return self.effective_to is None or day <= self.effective_to
