from __future__ import annotations

from datetime import date, datetime, timedelta

from ...common.datetime_utils import at_time, floor_minutes
from ...shifts.model import Shift
from .base import DepartureDecision, ExpectationStrategy, LatenessDecision


class ShiftStrategy(ExpectationStrategy):
    """Judge against the employee's active shift and its tolerance windows."""

    def __init__(self, shift: Shift):
        self.shift = shift

    def decide_checkin(self, *, check_in: datetime, work_date: date) -> LatenessDecision:
        start = at_time(work_date, self.shift.start_time)
        grace_end = start + timedelta(minutes=self.shift.grace_period_minutes)
        if check_in > grace_end:
            # Lateness counts from the nominal start, not from the end of grace.
            return LatenessDecision(is_late=True, late_minutes=floor_minutes(check_in - start))
        return LatenessDecision()

    def decide_checkout(self, *, check_out: datetime, work_date: date) -> DepartureDecision:
        end = at_time(work_date, self.shift.end_time)
        early_line = end - timedelta(minutes=self.shift.early_departure_threshold)
        if check_out < early_line:
            return DepartureDecision(
                is_early_departure=True,
                early_departure_minutes=floor_minutes(end - check_out),
            )
        if check_out > end:
            after = floor_minutes(check_out - end)
            if after > self.shift.overtime_start_after_minutes:
                return DepartureDecision(overtime_minutes=after)
        return DepartureDecision()
