from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class LatenessDecision:
    is_late: bool = False
    late_minutes: int = 0


@dataclass(frozen=True)
class DepartureDecision:
    is_early_departure: bool = False
    early_departure_minutes: int = 0
    overtime_minutes: int = 0


class ExpectationStrategy(ABC):
    """Strategy Pattern: encapsulate how arrival/departure times are judged."""

    @abstractmethod
    def decide_checkin(self, *, check_in: datetime, work_date: date) -> LatenessDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, check_out: datetime, work_date: date) -> DepartureDecision:
        raise NotImplementedError
