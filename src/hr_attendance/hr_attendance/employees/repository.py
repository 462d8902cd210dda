from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeDirectory(Protocol):
    def exists(self, employee_id: int) -> bool:
        raise NotImplementedError

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def creation_date(self, employee_id: int) -> Optional[date]:
        """Date the employee was created; None for an unknown employee or a missing timestamp."""

        raise NotImplementedError

    def list_for_backfill(self) -> Sequence[Employee]:
        """Employees the backfill synthesizes attendance for (non-admin roles)."""

        raise NotImplementedError
