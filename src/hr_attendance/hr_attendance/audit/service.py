from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.actor import Actor
from ..core.enums import AuditAction
from .model import AuditLogEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Writes one audit entry per successful attendance mutation."""

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        actor: Actor,
        action: AuditAction,
        *,
        before: Optional[AttendanceRecord],
        after: Optional[AttendanceRecord],
        reason: str,
    ) -> int:
        subject = after or before
        if subject is None or subject.attendance_id is None:
            raise ValueError("Audit entry needs a persisted attendance record")

        entry = AuditLogEntry(
            attendance_id=subject.attendance_id,
            employee_id=subject.employee_id,
            action_type=action,
            actor_id=actor.actor_id,
            old_values=before.to_dict() if before else None,
            new_values=after.to_dict() if after else None,
            reason=reason,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
        )
        audit_id = self._audit.append(entry)
        logger.debug(
            "Audit %s %s attendance=%s actor=%s",
            audit_id, action.value, subject.attendance_id, actor.actor_id,
        )
        return audit_id

    def history(self, attendance_id: int) -> Sequence[AuditLogEntry]:
        return self._audit.list_for_attendance(attendance_id)
