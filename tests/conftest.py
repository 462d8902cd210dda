from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Optional

import pytest

from hr_attendance.attendance.corrections import AttendanceCorrectionService
from hr_attendance.attendance.factory import ExpectationStrategyFactory
from hr_attendance.attendance.model import AttendanceRecord, BreakEntry, LocationLog, OvertimeEntry
from hr_attendance.attendance.service import AttendanceService
from hr_attendance.audit.model import AuditLogEntry
from hr_attendance.audit.service import AuditTrail
from hr_attendance.backfill.service import BackfillService
from hr_attendance.core.actor import Actor
from hr_attendance.core.constants import BACKFILL_ROLES
from hr_attendance.core.enums import AttendanceStatus
from hr_attendance.core.exceptions import ConflictError
from hr_attendance.employees.model import Employee
from hr_attendance.geofence.model import GeofenceZone
from hr_attendance.geofence.service import GeofenceService, GeofenceValidator
from hr_attendance.notifications.dispatcher import AlertDispatcher
from hr_attendance.reports.service import AttendanceReportService
from hr_attendance.shifts.model import Shift, ShiftAssignment
from hr_attendance.workdays.service import CalendarGate


@dataclass
class InMemoryEmployees:
    employees_by_id: dict[int, Employee] = field(default_factory=dict)

    def add(self, employee_id: int, created: date, *, name: str = "", role: str = "ROLE_EMPLOYEE") -> Employee:
        emp = Employee(
            employee_id=employee_id,
            full_name=name or f"Employee {employee_id}",
            role=role,
            created_at=datetime.combine(created, time(9, 0)),
        )
        self.employees_by_id[employee_id] = emp
        return emp

    def exists(self, employee_id: int) -> bool:
        return employee_id in self.employees_by_id

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.employees_by_id.get(employee_id)

    def creation_date(self, employee_id: int) -> Optional[date]:
        emp = self.employees_by_id.get(employee_id)
        return emp.creation_date if emp else None

    def list_for_backfill(self):
        return [e for _, e in sorted(self.employees_by_id.items()) if e.role in BACKFILL_ROLES]


@dataclass
class InMemoryShifts:
    assignments: dict[int, ShiftAssignment] = field(default_factory=dict)

    def assign(self, employee_id: int, shift: Shift, effective_from: date = date(2020, 1, 1)) -> None:
        self.assignments[employee_id] = ShiftAssignment(employee_id=employee_id, shift=shift, effective_from=effective_from)

    def get_active_assignment(self, employee_id: int, work_date: date) -> Optional[ShiftAssignment]:
        a = self.assignments.get(employee_id)
        return a if a and a.covers(work_date) else None


@dataclass
class InMemoryHolidays:
    dates: set = field(default_factory=set)
    lookups: int = 0

    def is_holiday(self, day: date) -> bool:
        self.lookups += 1
        return day in self.dates


@dataclass
class InMemoryLeaves:
    approved: dict[int, list] = field(default_factory=dict)

    def approve(self, employee_id: int, start: date, end: date) -> None:
        self.approved.setdefault(employee_id, []).append((start, end))

    def has_approved_leave(self, employee_id: int, day: date) -> bool:
        return any(s <= day <= e for s, e in self.approved.get(employee_id, []))


class InMemoryGeofences:
    def __init__(self, zones=()):
        self.zones: dict[int, GeofenceZone] = {z.zone_id: z for z in zones}

    def list_active(self):
        return [z for _, z in sorted(self.zones.items()) if z.is_active]

    def get_by_id(self, zone_id: int):
        return self.zones.get(zone_id)

    def create(self, *, name, latitude, longitude, radius_meters) -> int:
        zone_id = max(self.zones, default=0) + 1
        self.zones[zone_id] = GeofenceZone(zone_id, name, latitude, longitude, radius_meters)
        return zone_id

    def update(self, zone: GeofenceZone) -> bool:
        if zone.zone_id not in self.zones:
            return False
        self.zones[zone.zone_id] = zone
        return True


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self.overtime: dict[int, OvertimeEntry] = {}
        self.location_logs: list[LocationLog] = []
        self.breaks: list[BreakEntry] = []
        self._id = 0

    def get_by_id(self, attendance_id: int, *, for_update: bool = False):
        return self.records.get(attendance_id)

    def get_for_employee_and_date(self, employee_id: int, work_date: date, *, for_update: bool = False):
        for r in self.records.values():
            if r.employee_id == employee_id and r.work_date == work_date:
                return r
        return None

    def insert(self, record: AttendanceRecord) -> int:
        if self.get_for_employee_and_date(record.employee_id, record.work_date) is not None:
            raise ConflictError("Attendance record already exists for this employee and date")
        self._id += 1
        self.records[self._id] = replace(record, attendance_id=self._id)
        return self._id

    def update(self, record: AttendanceRecord) -> bool:
        if record.attendance_id not in self.records:
            return False
        self.records[record.attendance_id] = record
        return True

    def delete(self, attendance_id: int) -> bool:
        self.overtime.pop(attendance_id, None)
        self.location_logs = [l for l in self.location_logs if l.attendance_id != attendance_id]
        self.breaks = [b for b in self.breaks if b.attendance_id != attendance_id]
        return self.records.pop(attendance_id, None) is not None

    def count_with_status(self, employee_id, start, end, status) -> int:
        return sum(
            1
            for r in self.records.values()
            if r.employee_id == employee_id and start <= r.work_date <= end and r.status == status
        )

    def list_between(self, start, end, *, employee_id=None):
        rows = [
            r
            for r in self.records.values()
            if start <= r.work_date <= end and (employee_id is None or r.employee_id == employee_id)
        ]
        return sorted(rows, key=lambda r: (r.employee_id, r.work_date))

    def upsert_overtime(self, entry: OvertimeEntry) -> None:
        existing = self.overtime.get(entry.attendance_id)
        if existing:
            entry = replace(existing, overtime_minutes=entry.overtime_minutes)
        self.overtime[entry.attendance_id] = entry

    def delete_overtime(self, attendance_id: int) -> None:
        self.overtime.pop(attendance_id, None)

    def get_overtime(self, attendance_id: int, *, for_update: bool = False):
        return self.overtime.get(attendance_id)

    def approve_overtime(self, attendance_id: int, approved_by, approved_at) -> bool:
        existing = self.overtime.get(attendance_id)
        if existing is None:
            return False
        self.overtime[attendance_id] = replace(
            existing, is_approved=True, approved_by=approved_by, approved_at=approved_at
        )
        return True

    def list_overtime(self, start, end, *, employee_id=None, is_approved=None):
        rows = [
            e for e in self.overtime.values()
            if start <= e.work_date <= end
            and (employee_id is None or e.employee_id == employee_id)
            and (is_approved is None or e.is_approved == is_approved)
        ]
        return sorted(rows, key=lambda e: (-e.work_date.toordinal(), e.employee_id))

    def add_location_log(self, log: LocationLog) -> int:
        self.location_logs.append(log)
        return len(self.location_logs)

    def add_break(self, entry: BreakEntry) -> int:
        self.breaks.append(entry)
        return len(self.breaks)

    def for_employee(self, employee_id: int):
        return sorted((r for r in self.records.values() if r.employee_id == employee_id), key=lambda r: r.work_date)


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditLogEntry] = []

    def append(self, entry: AuditLogEntry) -> int:
        audit_id = len(self.entries) + 1
        self.entries.append(replace(entry, audit_id=audit_id))
        return audit_id

    def list_for_attendance(self, attendance_id: int):
        return [e for e in self.entries if e.attendance_id == attendance_id]


class RecordingSink:
    def __init__(self):
        self.alerts = []

    def alert(self, alert) -> None:
        self.alerts.append(alert)


class FailingSink:
    def alert(self, alert) -> None:
        raise RuntimeError("notification service down")


class FakeTransaction:
    """Snapshot the in-memory stores and restore them if the block raises."""

    def __init__(self, *stores):
        self._stores = stores
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def __call__(self):
        snapshots = [copy.deepcopy(s.__dict__) for s in self._stores]
        try:
            yield
        except Exception:
            for store, snap in zip(self._stores, snapshots):
                store.__dict__.clear()
                store.__dict__.update(snap)
            self.rollbacks += 1
            raise
        self.commits += 1


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@dataclass
class World:
    employees: InMemoryEmployees
    shifts: InMemoryShifts
    holidays: InMemoryHolidays
    leaves: InMemoryLeaves
    geofences: InMemoryGeofences
    attendance: InMemoryAttendance
    audit: InMemoryAudit
    sink: RecordingSink
    transaction: FakeTransaction
    clock: FixedClock
    service: AttendanceService
    corrections: AttendanceCorrectionService
    backfill: BackfillService
    geofence_service: GeofenceService
    reports: AttendanceReportService
    calendar: CalendarGate
    audit_trail: AuditTrail


OFFICE = GeofenceZone(zone_id=1, name="HQ", latitude=12.9716, longitude=77.5946, radius_meters=200)
ADMIN = Actor(actor_id=99, ip_address="10.0.0.5", user_agent="pytest")
STANDARD_SHIFT = Shift(shift_id=1, shift_name="Day", start_time=time(9, 0), end_time=time(18, 0))


def build_world(*, now: datetime = datetime(2024, 1, 15, 12, 0), sinks=None) -> World:
    employees = InMemoryEmployees()
    shifts = InMemoryShifts()
    holidays = InMemoryHolidays()
    leaves = InMemoryLeaves()
    geofences = InMemoryGeofences([OFFICE])
    attendance = InMemoryAttendance()
    audit = InMemoryAudit()
    sink = RecordingSink()
    transaction = FakeTransaction(attendance, audit)
    clock = FixedClock(now)

    audit_trail = AuditTrail(audit)
    factory = ExpectationStrategyFactory(shifts)
    calendar = CalendarGate(holidays, leaves)
    dispatcher = AlertDispatcher(sinks if sinks is not None else [sink])

    service = AttendanceService(
        attendance,
        employees,
        audit_trail,
        strategy_factory=factory,
        geofence=GeofenceValidator(geofences),
        alerts=dispatcher,
        transaction=transaction,
        clock=clock,
    )
    corrections = AttendanceCorrectionService(
        attendance, employees, audit_trail, strategy_factory=factory, transaction=transaction, clock=clock
    )
    backfill = BackfillService(attendance, employees, calendar, audit_trail, transaction=transaction, clock=clock)

    return World(
        employees=employees,
        shifts=shifts,
        holidays=holidays,
        leaves=leaves,
        geofences=geofences,
        attendance=attendance,
        audit=audit,
        sink=sink,
        transaction=transaction,
        clock=clock,
        service=service,
        corrections=corrections,
        backfill=backfill,
        geofence_service=GeofenceService(geofences),
        reports=AttendanceReportService(attendance, employees),
        calendar=calendar,
        audit_trail=audit_trail,
    )


@pytest.fixture
def world() -> World:
    w = build_world()
    w.employees.add(1, date(2024, 1, 1), name="Asha")
    return w


@pytest.fixture
def admin() -> Actor:
    return ADMIN


def checked_in(world: World, *, at: datetime, expected: Optional[datetime] = None, employee_id: int = 1):
    return world.service.record_check_in(ADMIN, employee_id, at, expected_check_in_time=expected)


def absent_count(world: World, employee_id: int) -> int:
    return sum(1 for r in world.attendance.for_employee(employee_id) if r.status == AttendanceStatus.ABSENT)
