from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..attendance.model import OvertimeEntry
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import coerce_date
from ..common.validators import optional_flag, require_int_id
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeDirectory


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


@dataclass(frozen=True)
class OvertimeReport:
    entries: list[OvertimeEntry]
    summary: dict


class AttendanceReportService:
    def __init__(self, attendance: AttendanceRepository, employees: EmployeeDirectory):
        self._attendance = attendance
        self._employees = employees

    def summarize(self, start: Any, end: Any, employee_id: Any = None) -> ReportData:
        start_day, end_day = _date_range(start, end)
        emp_filter: Optional[int] = require_int_id(employee_id, "employee_id") if employee_id not in (None, "") else None

        records = self._attendance.list_between(start_day, end_day, employee_id=emp_filter)

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []
        names: dict[int, str] = {}

        for r in records:
            if r.employee_id not in names:
                employee = self._employees.get_by_id(r.employee_id)
                names[r.employee_id] = employee.full_name if employee else "-"

            out_rows.append(
                {
                    "employee_id": r.employee_id,
                    "full_name": names[r.employee_id],
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "check_in": r.check_in.strftime("%H:%M") if r.check_in else "-",
                    "check_out": r.check_out.strftime("%H:%M") if r.check_out else "-",
                    "worked_hours": _hhmm(r.working_minutes),
                    "status": r.status.value,
                    "note": r.notes_text,
                }
            )

            s = summary_map.get(r.employee_id)
            if not s:
                s = {
                    "employee_id": r.employee_id,
                    "full_name": names[r.employee_id],
                    "days": 0,
                    "present": 0,
                    "late": 0,
                    "absent": 0,
                    "on_leave": 0,
                    "working_minutes": 0,
                    "overtime_minutes": 0,
                }
                summary_map[r.employee_id] = s
            s["days"] += 1
            if r.status == AttendanceStatus.ABSENT:
                s["absent"] += 1
            elif r.status == AttendanceStatus.ON_LEAVE:
                s["on_leave"] += 1
            else:
                # Late arrivals were still present for the day.
                s["present"] += 1
                if r.is_late or r.status == AttendanceStatus.LATE:
                    s["late"] += 1
            s["working_minutes"] += int(r.working_minutes)
            s["overtime_minutes"] += int(r.overtime_minutes)

        summary = []
        for s in summary_map.values():
            summary.append({**s, "total_hours": _hhmm(s["working_minutes"])})

        summary.sort(key=lambda x: x["working_minutes"], reverse=True)
        return ReportData(rows=out_rows, summary=summary)

    def overtime(self, start: Any, end: Any, employee_id: Any = None, is_approved: Any = None) -> OvertimeReport:
        start_day, end_day = _date_range(start, end)
        emp_filter = require_int_id(employee_id, "employee_id") if employee_id not in (None, "") else None
        entries = list(
            self._attendance.list_overtime(
                start_day, end_day, employee_id=emp_filter, is_approved=optional_flag(is_approved, "is_approved")
            )
        )
        approved = [e for e in entries if e.is_approved]
        return OvertimeReport(
            entries=entries,
            summary={
                "total_records": len(entries),
                "total_overtime_minutes": sum(e.overtime_minutes for e in entries),
                "approved_overtime_minutes": sum(e.overtime_minutes for e in approved),
                "pending_approval_count": len(entries) - len(approved),
            },
        )


def _hhmm(minutes: int) -> str:
    minutes = int(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _date_range(start: Any, end: Any) -> tuple[date, date]:
    start_day = coerce_date(start, "start_date")
    end_day = coerce_date(end, "end_date")
    if start_day > end_day:
        raise ValidationError("start_date must be on or before end_date")
    return start_day, end_day
