from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import floor_minutes
from .base import DepartureDecision, ExpectationStrategy, LatenessDecision


class ExplicitTimeStrategy(ExpectationStrategy):
    """Caller supplied the expected instant; no grace period applies."""

    def __init__(self, expected: datetime):
        self.expected = expected

    def decide_checkin(self, *, check_in: datetime, work_date: date) -> LatenessDecision:
        diff = floor_minutes(check_in - self.expected)
        if diff > 0:
            return LatenessDecision(is_late=True, late_minutes=diff)
        return LatenessDecision()

    def decide_checkout(self, *, check_out: datetime, work_date: date) -> DepartureDecision:
        diff = floor_minutes(self.expected - check_out)
        if diff > 0:
            return DepartureDecision(is_early_departure=True, early_departure_minutes=diff)
        if diff < 0:
            return DepartureDecision(overtime_minutes=abs(diff))
        return DepartureDecision()
