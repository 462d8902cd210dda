from __future__ import annotations

from typing import Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditLogEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditLogEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_audit_log(
                    attendance_id, employee_id, action_type, actor_id,
                    old_values, new_values, reason, ip_address, user_agent
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.attendance_id,
                    entry.employee_id,
                    entry.action_type.value,
                    entry.actor_id,
                    to_json(entry.old_values),
                    to_json(entry.new_values),
                    entry.reason,
                    entry.ip_address,
                    entry.user_agent,
                ),
            )
            return int(cur.lastrowid)

    def list_for_attendance(self, attendance_id: int) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, attendance_id, employee_id, action_type, actor_id,
                       old_values, new_values, reason, ip_address, user_agent, created_at
                FROM attendance_audit_log
                WHERE attendance_id=%s
                ORDER BY audit_id
                """,
                (attendance_id,),
            )
            return [
                AuditLogEntry(
                    audit_id=int(r["audit_id"]),
                    attendance_id=int(r["attendance_id"]),
                    employee_id=int(r["employee_id"]),
                    action_type=AuditAction(r["action_type"]),
                    actor_id=r.get("actor_id"),
                    old_values=from_json(r.get("old_values")),
                    new_values=from_json(r.get("new_values")),
                    reason=r.get("reason") or "",
                    ip_address=r.get("ip_address"),
                    user_agent=r.get("user_agent"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
