from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee as seen by the attendance engine."""

    employee_id: int
    full_name: str
    role: str
    created_at: datetime
    is_active: bool = True

    @property
    def creation_date(self) -> date:
        return self.created_at.date() if isinstance(self.created_at, datetime) else self.created_at

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "is_active": self.is_active,
        }
