from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.constants import (
    DEFAULT_EARLY_DEPARTURE_THRESHOLD,
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_OVERTIME_START_AFTER_MINUTES,
)
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import Shift, ShiftAssignment
from .repository import ShiftRepository


def _int_or(value, default: int) -> int:
    return int(value) if value is not None else default


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active_assignment(self, employee_id: int, work_date: date) -> Optional[ShiftAssignment]:
        # Latest effective assignment wins when ranges overlap.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT es.employee_id, es.effective_from, es.effective_to,
                       s.shift_id, s.shift_name, s.start_time, s.end_time,
                       s.grace_period_minutes, s.early_departure_threshold,
                       s.overtime_start_after_minutes, s.break_minutes
                FROM employee_shifts es
                JOIN work_shifts s ON s.shift_id = es.shift_id
                WHERE es.employee_id=%s
                  AND es.is_active=1
                  AND s.is_active=1
                  AND es.effective_from <= %s
                  AND (es.effective_to IS NULL OR es.effective_to >= %s)
                ORDER BY es.effective_from DESC
                LIMIT 1
                """,
                (employee_id, work_date, work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            shift = Shift(
                shift_id=int(r["shift_id"]),
                shift_name=r["shift_name"],
                start_time=normalize_mysql_time(r["start_time"]),
                end_time=normalize_mysql_time(r["end_time"]),
                grace_period_minutes=_int_or(r.get("grace_period_minutes"), DEFAULT_GRACE_PERIOD_MINUTES),
                early_departure_threshold=_int_or(r.get("early_departure_threshold"), DEFAULT_EARLY_DEPARTURE_THRESHOLD),
                overtime_start_after_minutes=_int_or(
                    r.get("overtime_start_after_minutes"), DEFAULT_OVERTIME_START_AFTER_MINUTES
                ),
                break_minutes=int(r.get("break_minutes") or 0),
            )
            return ShiftAssignment(
                employee_id=int(r["employee_id"]),
                shift=shift,
                effective_from=r["effective_from"],
                effective_to=r.get("effective_to"),
            )
