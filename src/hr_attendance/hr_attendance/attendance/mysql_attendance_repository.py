from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.constants import DEFAULT_OVERTIME_RATE
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_json,
    to_json,
    unique_violation_as_conflict,
)
from .model import (
    AttendanceRecord,
    BreakEntry,
    LocationLog,
    OvertimeEntry,
    notes_from_list,
    notes_to_list,
)
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, check_in, check_out,
    working_minutes, break_minutes, overtime_minutes, status,
    is_late, late_minutes, is_early_departure, early_departure_minutes,
    location, notes, is_manual_entry, approved_by, approved_at,
    created_at, updated_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=r.get("check_in"),
        check_out=r.get("check_out"),
        working_minutes=int(r.get("working_minutes") or 0),
        break_minutes=int(r.get("break_minutes") or 0),
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        status=AttendanceStatus(r["status"]),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        is_early_departure=bool(r.get("is_early_departure")),
        early_departure_minutes=int(r.get("early_departure_minutes") or 0),
        location=r.get("location"),
        notes=notes_from_list(from_json(r.get("notes"))),
        is_manual_entry=bool(r.get("is_manual_entry")),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


_OVERTIME_COLUMNS = """
    attendance_id, employee_id, work_date, overtime_minutes, overtime_rate,
    is_approved, approved_by, approved_at
"""


def _row_to_overtime(r: dict) -> OvertimeEntry:
    return OvertimeEntry(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        overtime_rate=Decimal(str(r.get("overtime_rate") or DEFAULT_OVERTIME_RATE)),
        is_approved=bool(r.get("is_approved")),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
    )


def _record_params(record: AttendanceRecord) -> tuple:
    return (
        record.check_in,
        record.check_out,
        int(record.working_minutes),
        int(record.break_minutes),
        int(record.overtime_minutes),
        record.status.value,
        int(record.is_late),
        int(record.late_minutes),
        int(record.is_early_departure),
        int(record.early_departure_minutes),
        record.location,
        to_json(notes_to_list(record.notes)),
        int(record.is_manual_entry),
        record.approved_by,
        record.approved_at,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int, *, for_update: bool = False) -> Optional[AttendanceRecord]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s{lock}",
                (attendance_id,),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(
        self, employee_id: int, work_date: date, *, for_update: bool = False
    ) -> Optional[AttendanceRecord]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s{lock}",
                (employee_id, work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def insert(self, record: AttendanceRecord) -> int:
        with unique_violation_as_conflict("Attendance record already exists for this employee and date"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        employee_id, work_date, check_in, check_out,
                        working_minutes, break_minutes, overtime_minutes, status,
                        is_late, late_minutes, is_early_departure, early_departure_minutes,
                        location, notes, is_manual_entry, approved_by, approved_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (record.employee_id, record.work_date) + _record_params(record),
                )
                return int(cur.lastrowid)

    def update(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in=%s, check_out=%s,
                    working_minutes=%s, break_minutes=%s, overtime_minutes=%s, status=%s,
                    is_late=%s, late_minutes=%s, is_early_departure=%s, early_departure_minutes=%s,
                    location=%s, notes=%s, is_manual_entry=%s, approved_by=%s, approved_at=%s
                WHERE attendance_id=%s
                """,
                _record_params(record) + (record.attendance_id,),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_breaks WHERE attendance_id=%s", (attendance_id,))
            cur.execute("DELETE FROM attendance_location_logs WHERE attendance_id=%s", (attendance_id,))
            cur.execute("DELETE FROM overtime_tracking WHERE attendance_id=%s", (attendance_id,))
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (attendance_id,))
            return cur.rowcount > 0

    def count_with_status(self, employee_id: int, start: date, end: date, status: AttendanceStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM attendance_records
                WHERE employee_id=%s AND status=%s AND work_date BETWEEN %s AND %s
                """,
                (employee_id, status.value, start, end),
            )
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0

    def list_between(self, start: date, end: date, *, employee_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        where = ["work_date BETWEEN %s AND %s"]
        params: list = [start, end]
        if employee_id is not None:
            where.append("employee_id=%s")
            params.append(employee_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {' AND '.join(where)}
                ORDER BY employee_id, work_date
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def upsert_overtime(self, entry: OvertimeEntry) -> None:
        # Re-syncing minutes leaves an existing approval untouched.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtime_tracking(
                    attendance_id, employee_id, work_date, overtime_minutes, overtime_rate, is_approved
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE overtime_minutes=VALUES(overtime_minutes)
                """,
                (
                    entry.attendance_id,
                    entry.employee_id,
                    entry.work_date,
                    int(entry.overtime_minutes),
                    entry.overtime_rate,
                    int(entry.is_approved),
                ),
            )

    def delete_overtime(self, attendance_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM overtime_tracking WHERE attendance_id=%s", (attendance_id,))

    def get_overtime(self, attendance_id: int, *, for_update: bool = False) -> Optional[OvertimeEntry]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_OVERTIME_COLUMNS} FROM overtime_tracking WHERE attendance_id=%s{lock}",
                (attendance_id,),
            )
            r = fetchone(cur)
            return _row_to_overtime(r) if r else None

    def approve_overtime(self, attendance_id: int, approved_by: Optional[int], approved_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_tracking
                SET is_approved=1, approved_by=%s, approved_at=%s
                WHERE attendance_id=%s
                """,
                (approved_by, approved_at, attendance_id),
            )
            return cur.rowcount > 0

    def list_overtime(
        self,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
        is_approved: Optional[bool] = None,
    ) -> Sequence[OvertimeEntry]:
        where = ["work_date BETWEEN %s AND %s"]
        params: list = [start, end]
        if employee_id is not None:
            where.append("employee_id=%s")
            params.append(employee_id)
        if is_approved is not None:
            where.append("is_approved=%s")
            params.append(int(is_approved))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_OVERTIME_COLUMNS}
                FROM overtime_tracking
                WHERE {' AND '.join(where)}
                ORDER BY work_date DESC, employee_id
                """,
                tuple(params),
            )
            return [_row_to_overtime(r) for r in fetchall(cur)]

    def add_location_log(self, log: LocationLog) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_location_logs(
                    attendance_id, log_type, latitude, longitude,
                    geofence_id, is_within_geofence, ip_address, logged_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    log.attendance_id,
                    log.log_type.value,
                    log.latitude,
                    log.longitude,
                    log.geofence_id,
                    int(log.is_within_geofence),
                    log.ip_address,
                    log.logged_at,
                ),
            )
            return int(cur.lastrowid)

    def add_break(self, entry: BreakEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_breaks(attendance_id, break_type, duration_minutes, reason)
                VALUES(%s,%s,%s,%s)
                """,
                (entry.attendance_id, entry.break_type, int(entry.duration_minutes), entry.reason),
            )
            return int(cur.lastrowid)
