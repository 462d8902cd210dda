from __future__ import annotations

from typing import Protocol, Sequence

from .model import AuditLogEntry


class AuditRepository(Protocol):
    """Append-only: entries are never updated or deleted."""

    def append(self, entry: AuditLogEntry) -> int:
        raise NotImplementedError

    def list_for_attendance(self, attendance_id: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError
