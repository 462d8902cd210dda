from __future__ import annotations

from datetime import date

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import HolidayRepository, LeaveRepository


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_holiday(self, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT holiday_id FROM days_holiday WHERE holiday_date=%s LIMIT 1",
                (day,),
            )
            return fetchone(cur) is not None


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def has_approved_leave(self, employee_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT application_id
                FROM leave_applications
                WHERE employee_id=%s AND status=%s
                  AND start_date <= %s AND end_date >= %s
                LIMIT 1
                """,
                (employee_id, LeaveStatus.APPROVED.value, day, day),
            )
            return fetchone(cur) is not None
