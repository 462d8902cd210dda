from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, BreakEntry, LocationLog, OvertimeEntry


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int, *, for_update: bool = False) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(
        self, employee_id: int, work_date: date, *, for_update: bool = False
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> int:
        """Insert a new record; ConflictError if (employee, date) already exists."""

        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        """Delete the record together with its breaks, location logs and overtime."""

        raise NotImplementedError

    def count_with_status(self, employee_id: int, start: date, end: date, status: AttendanceStatus) -> int:
        raise NotImplementedError

    def list_between(self, start: date, end: date, *, employee_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def upsert_overtime(self, entry: OvertimeEntry) -> None:
        raise NotImplementedError

    def delete_overtime(self, attendance_id: int) -> None:
        raise NotImplementedError

    def get_overtime(self, attendance_id: int, *, for_update: bool = False) -> Optional[OvertimeEntry]:
        raise NotImplementedError

    def approve_overtime(self, attendance_id: int, approved_by: Optional[int], approved_at: datetime) -> bool:
        raise NotImplementedError

    def list_overtime(
        self,
        start: date,
        end: date,
        *,
        employee_id: Optional[int] = None,
        is_approved: Optional[bool] = None,
    ) -> Sequence[OvertimeEntry]:
        """Overtime rows with work_date in [start, end], newest first."""

        raise NotImplementedError

    def add_location_log(self, log: LocationLog) -> int:
        raise NotImplementedError

    def add_break(self, entry: BreakEntry) -> int:
        raise NotImplementedError
