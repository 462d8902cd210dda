from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, ContextManager, List, Optional, Tuple

from ..audit.service import AuditTrail
from ..common.datetime_utils import coerce_date, now_local, parse_instant, parse_optional_instant
from ..common.validators import require_int_id
from ..core.actor import Actor
from ..core.constants import (
    ABSENCE_ALERT_THRESHOLD,
    ABSENCE_LOOKBACK_DAYS,
    CHECK_IN_EARLIEST,
    CHECK_IN_LATEST,
    CHECK_OUT_EARLIEST,
    CHECK_OUT_LATEST,
    DEFAULT_ABSENT_NOTE,
    MIN_WORKING_MINUTES,
    OUTSIDE_GEOFENCE_NOTE,
    REASON_ABSENT,
    REASON_CHECK_IN,
    REASON_CHECK_OUT,
)
from ..core.enums import (
    AlertSeverity,
    AlertType,
    AttendanceStatus,
    AuditAction,
    LocationLogType,
    NoteTag,
)
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeDirectory
from ..geofence.model import GeofenceMatch
from ..geofence.service import GeofenceValidator
from ..notifications.dispatcher import AlertDispatcher
from ..notifications.model import Alert
from .calculations import (
    overtime_entry_for,
    require_checkout_after_checkin,
    require_within_window,
    severity_for,
    status_for,
    working_minutes,
)
from .factory import ExpectationStrategyFactory
from .model import AttendanceRecord, LocationLog, NoteEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

Coordinates = Tuple[Any, Any]


class AttendanceService:
    """Live check-in / check-out and absence marking.

    Every public operation runs inside one transaction: the target row is
    locked, derived fields are computed, the record and its audit entry are
    written, and only after commit are alerts handed to the dispatcher.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeDirectory,
        audit: AuditTrail,
        *,
        strategy_factory: ExpectationStrategyFactory,
        geofence: Optional[GeofenceValidator] = None,
        alerts: Optional[AlertDispatcher] = None,
        transaction: Callable[[], ContextManager] = nullcontext,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._employees = employees
        self._audit = audit
        self._factory = strategy_factory
        self._geofence = geofence
        self._alerts = alerts or AlertDispatcher()
        self._transaction = transaction
        self._clock = clock

    def record_check_in(
        self,
        actor: Actor,
        employee_id: Any,
        check_in_time: Any = None,
        *,
        expected_check_in_time: Any = None,
        work_date: Any = None,
        location: Optional[str] = None,
        coordinates: Optional[Coordinates] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        employee_id = self._require_employee(employee_id)
        check_in = self._instant(check_in_time, "check_in_time")
        day = coerce_date(work_date, "work_date") if work_date else check_in.date()
        expected = parse_optional_instant(expected_check_in_time, "expected_check_in_time", on_date=day)
        if expected is not None:
            require_within_window(
                check_in, expected, earliest=CHECK_IN_EARLIEST, latest=CHECK_IN_LATEST, label="Check-in"
            )
        geo = self._match(coordinates)

        with self._transaction():
            existing = self._attendance.get_for_employee_and_date(employee_id, day, for_update=True)
            if existing and existing.check_in is not None:
                raise ConflictError("Employee has already checked in today")

            strategy = self._factory.resolve(employee_id=employee_id, work_date=day, expected=expected)
            decision = strategy.decide_checkin(check_in=check_in, work_date=day)

            entries = existing.notes if existing else ()
            entries = _append_notes(entries, notes, geo)
            now = self._clock()
            fields = dict(
                check_in=check_in,
                status=status_for(is_late=decision.is_late),
                is_late=decision.is_late,
                late_minutes=decision.late_minutes,
                location=location or (existing.location if existing else None),
                notes=entries,
                is_manual_entry=True,
                approved_by=actor.actor_id,
                approved_at=now,
            )

            if existing:
                # A check-in on a pre-existing row (e.g. marked absent earlier) replaces it.
                record = replace(
                    existing,
                    check_out=None,
                    working_minutes=0,
                    is_early_departure=False,
                    early_departure_minutes=0,
                    **fields,
                )
                self._attendance.update(record)
                action = AuditAction.UPDATE
            else:
                record = AttendanceRecord(attendance_id=None, employee_id=employee_id, work_date=day, **fields)
                record = replace(record, attendance_id=self._attendance.insert(record))
                action = AuditAction.CREATE

            self._log_location(record, geo, LocationLogType.CHECK_IN, actor, check_in)
            self._audit.record(actor, action, before=existing, after=record, reason=REASON_CHECK_IN)

        logger.info(
            "Check-in employee=%s date=%s late=%s (%s min)",
            employee_id, day, record.is_late, record.late_minutes,
        )

        if record.is_late:
            self._alerts.dispatch([
                Alert(
                    employee_id=employee_id,
                    alert_type=AlertType.LATE_ARRIVAL,
                    severity=severity_for(record.late_minutes),
                    alert_date=day,
                    message=f"Employee checked in {record.late_minutes} minutes late",
                )
            ])
        return record

    def record_check_out(
        self,
        actor: Actor,
        employee_id: Any,
        check_out_time: Any = None,
        *,
        expected_check_out_time: Any = None,
        work_date: Any = None,
        location: Optional[str] = None,
        coordinates: Optional[Coordinates] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        employee_id = self._require_employee(employee_id)
        check_out = self._instant(check_out_time, "check_out_time")
        day = coerce_date(work_date, "work_date") if work_date else check_out.date()
        expected = parse_optional_instant(expected_check_out_time, "expected_check_out_time", on_date=day)
        if expected is not None:
            require_within_window(
                check_out, expected, earliest=CHECK_OUT_EARLIEST, latest=CHECK_OUT_LATEST, label="Check-out"
            )
        geo = self._match(coordinates)

        with self._transaction():
            existing = self._attendance.get_for_employee_and_date(employee_id, day, for_update=True)
            if not existing or existing.check_in is None:
                raise NotFoundError("No check-in record found for today. Please check-in first.")
            if existing.check_out is not None:
                raise ConflictError("Employee has already checked out today")

            require_checkout_after_checkin(existing.check_in, check_out)
            minutes = working_minutes(existing.check_in, check_out)
            if minutes < MIN_WORKING_MINUTES:
                raise ValidationError(
                    f"Minimum working time is {MIN_WORKING_MINUTES // 60} hours; "
                    f"only {minutes} minutes recorded"
                )

            strategy = self._factory.resolve(employee_id=employee_id, work_date=day, expected=expected)
            decision = strategy.decide_checkout(check_out=check_out, work_date=day)

            record = replace(
                existing,
                check_out=check_out,
                working_minutes=minutes,
                is_early_departure=decision.is_early_departure,
                early_departure_minutes=decision.early_departure_minutes,
                overtime_minutes=decision.overtime_minutes,
                status=status_for(is_late=existing.is_late, is_early_departure=decision.is_early_departure),
                location=location or existing.location,
                notes=_append_notes(existing.notes, notes, geo),
            )
            self._attendance.update(record)
            if record.overtime_minutes > 0:
                self._attendance.upsert_overtime(overtime_entry_for(record))

            self._log_location(record, geo, LocationLogType.CHECK_OUT, actor, check_out)
            self._audit.record(actor, AuditAction.UPDATE, before=existing, after=record, reason=REASON_CHECK_OUT)

        logger.info(
            "Check-out employee=%s date=%s worked=%s min early=%s overtime=%s",
            employee_id, day, record.working_minutes, record.early_departure_minutes, record.overtime_minutes,
        )

        if record.is_early_departure:
            self._alerts.dispatch([
                Alert(
                    employee_id=employee_id,
                    alert_type=AlertType.EARLY_DEPARTURE,
                    severity=severity_for(record.early_departure_minutes),
                    alert_date=day,
                    message=f"Employee left {record.early_departure_minutes} minutes early",
                )
            ])
        return record

    def mark_absent(
        self,
        actor: Actor,
        employee_id: Any,
        work_date: Any,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        employee_id = self._require_employee(employee_id)
        day = coerce_date(work_date, "work_date")
        note = (reason or "").strip() or DEFAULT_ABSENT_NOTE

        with self._transaction():
            existing = self._attendance.get_for_employee_and_date(employee_id, day, for_update=True)
            fields = dict(
                check_in=None,
                check_out=None,
                working_minutes=0,
                overtime_minutes=0,
                status=AttendanceStatus.ABSENT,
                is_late=False,
                late_minutes=0,
                is_early_departure=False,
                early_departure_minutes=0,
                notes=(NoteEntry(NoteTag.ABSENCE, note),),
                is_manual_entry=True,
                approved_by=actor.actor_id,
                approved_at=self._clock(),
            )
            if existing:
                record = replace(existing, **fields)
                self._attendance.update(record)
                self._attendance.delete_overtime(record.attendance_id)
                action = AuditAction.UPDATE
            else:
                record = AttendanceRecord(attendance_id=None, employee_id=employee_id, work_date=day, **fields)
                record = replace(record, attendance_id=self._attendance.insert(record))
                action = AuditAction.CREATE

            self._audit.record(actor, action, before=existing, after=record, reason=reason or REASON_ABSENT)
            absences = self._attendance.count_with_status(
                employee_id, day - timedelta(days=ABSENCE_LOOKBACK_DAYS), day, AttendanceStatus.ABSENT
            )

        logger.info("Marked employee=%s absent on %s (%s absences in the last week)", employee_id, day, absences)

        if absences >= ABSENCE_ALERT_THRESHOLD:
            self._alerts.dispatch([
                Alert(
                    employee_id=employee_id,
                    alert_type=AlertType.CONTINUOUS_ABSENT,
                    severity=AlertSeverity.HIGH,
                    alert_date=day,
                    message=f"Employee has been absent for {absences} days in the last week",
                )
            ])
        return record

    def get_record(self, employee_id: Any, work_date: Any) -> AttendanceRecord:
        employee_id = require_int_id(employee_id, "employee_id")
        day = coerce_date(work_date, "work_date")
        record = self._attendance.get_for_employee_and_date(employee_id, day)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _require_employee(self, employee_id: Any) -> int:
        employee_id = require_int_id(employee_id, "employee_id")
        if not self._employees.exists(employee_id):
            raise NotFoundError("Employee not found")
        return employee_id

    def _instant(self, value: Any, field_name: str) -> datetime:
        if value is None or value == "":
            return self._clock()
        return parse_instant(value, field_name)

    def _match(self, coordinates: Optional[Coordinates]) -> Optional[GeofenceMatch]:
        if not coordinates or self._geofence is None:
            return None
        latitude, longitude = coordinates
        if latitude in (None, "") or longitude in (None, ""):
            return None
        return self._geofence.match(latitude, longitude)

    def _log_location(
        self,
        record: AttendanceRecord,
        geo: Optional[GeofenceMatch],
        log_type: LocationLogType,
        actor: Actor,
        at: datetime,
    ) -> None:
        if geo is None:
            return
        self._attendance.add_location_log(
            LocationLog(
                attendance_id=record.attendance_id,
                log_type=log_type,
                latitude=geo.latitude,
                longitude=geo.longitude,
                geofence_id=geo.zone_id,
                is_within_geofence=geo.is_within,
                ip_address=actor.ip_address,
                logged_at=at,
            )
        )


def _append_notes(
    entries: Tuple[NoteEntry, ...], text: Optional[str], geo: Optional[GeofenceMatch]
) -> Tuple[NoteEntry, ...]:
    extra: List[NoteEntry] = []
    if text and text.strip():
        extra.append(NoteEntry(NoteTag.USER, text.strip()))
    if geo is not None and not geo.is_within:
        extra.append(NoteEntry(NoteTag.GEOFENCE, OUTSIDE_GEOFENCE_NOTE))
    return tuple(entries) + tuple(extra)

