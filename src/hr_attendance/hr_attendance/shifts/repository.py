from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import ShiftAssignment


class ShiftRepository(Protocol):
    def get_active_assignment(self, employee_id: int, work_date: date) -> Optional[ShiftAssignment]:
        raise NotImplementedError
