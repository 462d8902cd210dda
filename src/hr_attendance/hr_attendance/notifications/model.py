from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..core.enums import AlertSeverity, AlertType


@dataclass(frozen=True)
class Alert:
    employee_id: int
    alert_type: AlertType
    severity: AlertSeverity
    alert_date: date
    message: str
