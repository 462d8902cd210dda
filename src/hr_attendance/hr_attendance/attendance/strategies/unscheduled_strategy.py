from __future__ import annotations

from datetime import date, datetime

from .base import DepartureDecision, ExpectationStrategy, LatenessDecision


class UnscheduledStrategy(ExpectationStrategy):
    """No expected time and no shift: never late, never early, no overtime."""

    def decide_checkin(self, *, check_in: datetime, work_date: date) -> LatenessDecision:
        return LatenessDecision()

    def decide_checkout(self, *, check_out: datetime, work_date: date) -> DepartureDecision:
        return DepartureDecision()
