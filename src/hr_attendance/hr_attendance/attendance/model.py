from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.enums import AttendanceStatus, LocationLogType, NoteTag


@dataclass(frozen=True)
class NoteEntry:
    """One line of a record's running note."""

    tag: NoteTag
    text: str

    def to_dict(self) -> dict:
        return {"tag": self.tag.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NoteEntry":
        return cls(tag=NoteTag(data.get("tag", NoteTag.USER.value)), text=str(data.get("text", "")))


def notes_to_list(notes: Sequence[NoteEntry]) -> List[dict]:
    return [n.to_dict() for n in notes]


def notes_from_list(raw: Any) -> Tuple[NoteEntry, ...]:
    """Decode stored notes; a legacy plain-text value becomes one user entry."""
    if not raw:
        return ()
    if isinstance(raw, str):
        return (NoteEntry(NoteTag.USER, raw),)
    return tuple(NoteEntry.from_dict(item) for item in raw)


def render_notes(notes: Sequence[NoteEntry]) -> str:
    return "\n".join(n.text for n in notes if n.text)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one work date."""

    attendance_id: Optional[int]
    employee_id: int
    work_date: date
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    working_minutes: int = 0
    break_minutes: int = 0
    overtime_minutes: int = 0
    status: AttendanceStatus = AttendanceStatus.PRESENT
    is_late: bool = False
    late_minutes: int = 0
    is_early_departure: bool = False
    early_departure_minutes: int = 0
    location: Optional[str] = None
    notes: Tuple[NoteEntry, ...] = field(default_factory=tuple)
    is_manual_entry: bool = False
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def notes_text(self) -> str:
        return render_notes(self.notes)

    def with_note(self, tag: NoteTag, text: str) -> Tuple[NoteEntry, ...]:
        return self.notes + (NoteEntry(tag, text),)

    def to_dict(self) -> dict:
        """Snapshot used for HTTP responses and audit old/new values."""
        return {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "check_in": self.check_in.isoformat() if self.check_in else None,
            "check_out": self.check_out.isoformat() if self.check_out else None,
            "working_minutes": self.working_minutes,
            "break_minutes": self.break_minutes,
            "overtime_minutes": self.overtime_minutes,
            "status": self.status.value,
            "is_late": self.is_late,
            "late_minutes": self.late_minutes,
            "is_early_departure": self.is_early_departure,
            "early_departure_minutes": self.early_departure_minutes,
            "location": self.location,
            "notes": self.notes_text or None,
            "is_manual_entry": self.is_manual_entry,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
        }


@dataclass(frozen=True)
class OvertimeEntry:
    """Overtime tracking row; one per attendance record, approved separately."""

    attendance_id: int
    employee_id: int
    work_date: date
    overtime_minutes: int
    overtime_rate: Decimal = Decimal("1.5")
    is_approved: bool = False
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "overtime_minutes": self.overtime_minutes,
            "overtime_rate": str(self.overtime_rate),
            "is_approved": self.is_approved,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
        }


@dataclass(frozen=True)
class LocationLog:
    attendance_id: int
    log_type: LocationLogType
    latitude: float
    longitude: float
    geofence_id: Optional[int]
    is_within_geofence: bool
    ip_address: Optional[str]
    logged_at: datetime


@dataclass(frozen=True)
class BreakEntry:
    attendance_id: int
    break_type: str
    duration_minutes: int
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
