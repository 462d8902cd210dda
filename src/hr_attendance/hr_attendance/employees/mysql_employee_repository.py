from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.constants import BACKFILL_ROLES
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeDirectory


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        full_name=r["full_name"],
        role=r["role"],
        created_at=r["created_at"],
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS ok FROM employees WHERE employee_id=%s", (employee_id,))
            return fetchone(cur) is not None

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, full_name, role, created_at, is_active
                FROM employees
                WHERE employee_id=%s
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def creation_date(self, employee_id: int) -> Optional[date]:
        employee = self.get_by_id(employee_id)
        return employee.creation_date if employee else None

    def list_for_backfill(self) -> Sequence[Employee]:
        placeholders = ",".join(["%s"] * len(BACKFILL_ROLES))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, full_name, role, created_at, is_active
                FROM employees
                WHERE role IN ({placeholders})
                ORDER BY employee_id
                """,
                tuple(BACKFILL_ROLES),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
