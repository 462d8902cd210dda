from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditLogEntry:
    """Append-only record of one mutation of an attendance record."""

    attendance_id: int
    employee_id: int
    action_type: AuditAction
    actor_id: Optional[int]
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    reason: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    audit_id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "audit_id": self.audit_id,
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "action_type": self.action_type.value,
            "actor_id": self.actor_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "reason": self.reason,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
