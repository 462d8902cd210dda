from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Iterable, List, Optional

from ..audit.service import AuditTrail
from ..common.datetime_utils import coerce_date, format_duration, now_local, parse_optional_instant
from ..common.validators import hours_to_minutes, require_hours, require_int_id, require_non_empty
from ..core.actor import Actor
from ..core.constants import (
    REASON_APPROVE_OVERTIME,
    REASON_BULK,
    REASON_DELETE,
    REASON_EDIT_BREAK,
    REASON_EDIT_CHECK_IN,
    REASON_EDIT_CHECK_OUT,
    REASON_OVERTIME,
    REASON_UPDATE,
)
from ..core.enums import AttendanceStatus, AuditAction, NoteTag
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..employees.repository import EmployeeDirectory
from .calculations import overtime_entry_for, require_checkout_after_checkin, status_for, working_minutes
from .factory import ExpectationStrategyFactory
from .model import AttendanceRecord, BreakEntry, NoteEntry, OvertimeEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

BULK_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.ON_LEAVE)


@dataclass
class BulkMarkResult:
    marked: List[AttendanceRecord] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "message": f"Bulk attendance marked: {len(self.marked)} successful, {len(self.failed)} failed",
            "successful": [r.to_dict() for r in self.marked],
            "failed": self.failed,
            "total_processed": len(self.marked) + len(self.failed),
        }


class AttendanceCorrectionService:
    """Administrative edits of existing attendance records.

    Every operation finds its target by ``attendance_id`` or by
    ``(employee_id, work_date)``, locks it, applies the change with the
    recomputation rules of that operation, and writes one audit entry.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeDirectory,
        audit: AuditTrail,
        *,
        strategy_factory: ExpectationStrategyFactory,
        transaction: Callable[[], ContextManager] = nullcontext,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._employees = employees
        self._audit = audit
        self._factory = strategy_factory
        self._transaction = transaction
        self._clock = clock

    def edit_check_in(
        self,
        actor: Actor,
        *,
        check_in_time: Any,
        expected_check_in_time: Any = None,
        attendance_id: Any = None,
        employee_id: Any = None,
        work_date: Any = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        with self._transaction():
            existing = self._resolve(attendance_id, employee_id, work_date)
            check_in = parse_optional_instant(check_in_time, "check_in_time", on_date=existing.work_date)
            if check_in is None:
                raise ValidationError("check_in_time is required")
            if existing.check_out is not None:
                require_checkout_after_checkin(check_in, existing.check_out)

            expected = parse_optional_instant(
                expected_check_in_time, "expected_check_in_time", on_date=existing.work_date
            )
            strategy = self._factory.resolve(
                employee_id=existing.employee_id, work_date=existing.work_date, expected=expected
            )
            decision = strategy.decide_checkin(check_in=check_in, work_date=existing.work_date)

            record = replace(
                existing,
                check_in=check_in,
                working_minutes=(
                    working_minutes(check_in, existing.check_out) if existing.check_out else existing.working_minutes
                ),
                is_late=decision.is_late,
                late_minutes=decision.late_minutes,
                status=status_for(is_late=decision.is_late, is_early_departure=existing.is_early_departure),
            )
            return self._save(actor, existing, record, reason or REASON_EDIT_CHECK_IN)

    def edit_check_out(
        self,
        actor: Actor,
        *,
        check_out_time: Any,
        expected_check_out_time: Any = None,
        attendance_id: Any = None,
        employee_id: Any = None,
        work_date: Any = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        with self._transaction():
            existing = self._resolve(attendance_id, employee_id, work_date)
            if existing.check_in is None:
                raise ValidationError("Cannot set check-out time without a check-in time")
            check_out = parse_optional_instant(check_out_time, "check_out_time", on_date=existing.work_date)
            if check_out is None:
                raise ValidationError("check_out_time is required")
            require_checkout_after_checkin(existing.check_in, check_out)

            expected = parse_optional_instant(
                expected_check_out_time, "expected_check_out_time", on_date=existing.work_date
            )
            strategy = self._factory.resolve(
                employee_id=existing.employee_id, work_date=existing.work_date, expected=expected
            )
            decision = strategy.decide_checkout(check_out=check_out, work_date=existing.work_date)

            record = replace(
                existing,
                check_out=check_out,
                working_minutes=working_minutes(existing.check_in, check_out),
                is_early_departure=decision.is_early_departure,
                early_departure_minutes=decision.early_departure_minutes,
                overtime_minutes=decision.overtime_minutes,
                status=status_for(is_late=existing.is_late, is_early_departure=decision.is_early_departure),
            )
            record = self._save(actor, existing, record, reason or REASON_EDIT_CHECK_OUT)
            self._sync_overtime(record)
            return record

    def edit_break(
        self,
        actor: Actor,
        *,
        break_duration_hours: Any,
        attendance_id: Any = None,
        employee_id: Any = None,
        work_date: Any = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        hours = require_hours(break_duration_hours, "break_duration_hours")
        with self._transaction():
            existing = self._resolve(attendance_id, employee_id, work_date)
            record = replace(existing, break_minutes=hours_to_minutes(hours))
            return self._save(actor, existing, record, reason or REASON_EDIT_BREAK)

    def add_break(
        self,
        actor: Actor,
        *,
        employee_id: Any,
        work_date: Any,
        break_type: Any,
        duration_hours: Any,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        employee_id = require_int_id(employee_id, "employee_id")
        break_type = require_non_empty(break_type, "break_type")
        hours = require_hours(duration_hours, "duration_hours", allow_zero=False)
        minutes = hours_to_minutes(hours)
        if minutes <= 0:
            raise ValidationError("duration_hours must be at least one minute")
        if not self._employees.exists(employee_id):
            raise NotFoundError("Employee not found")

        duration = format_duration(minutes)
        note = f"Break: {break_type} - {duration}"
        if reason and reason.strip():
            note += f" ({reason.strip()})"

        with self._transaction():
            existing = self._resolve(None, employee_id, work_date)
            if existing.check_in is None:
                raise ValidationError("Employee has not checked in on this date")
            if existing.check_out is not None:
                raise ValidationError("Cannot add a break after check-out")

            record = replace(
                existing,
                break_minutes=existing.break_minutes + minutes,
                notes=existing.with_note(NoteTag.BREAK, note),
            )
            record = self._save(actor, existing, record, f"Admin added break: {break_type} - {duration}")
            self._attendance.add_break(
                BreakEntry(
                    attendance_id=record.attendance_id,
                    break_type=break_type,
                    duration_minutes=minutes,
                    reason=(reason or "").strip() or None,
                )
            )
            return record

    def set_overtime(
        self,
        actor: Actor,
        *,
        overtime_hours: Any,
        attendance_id: Any = None,
        employee_id: Any = None,
        work_date: Any = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        hours = require_hours(overtime_hours, "overtime_hours")
        with self._transaction():
            existing = self._resolve(attendance_id, employee_id, work_date)
            record = replace(existing, overtime_minutes=hours_to_minutes(hours))
            record = self._save(actor, existing, record, reason or REASON_OVERTIME)
            self._sync_overtime(record)
            return record

    def approve_overtime(
        self,
        actor: Actor,
        *,
        attendance_id: Any,
        reason: Optional[str] = None,
    ) -> OvertimeEntry:
        """Mark a record's overtime as approved. Later minute re-syncs keep the approval."""
        attendance_id = require_int_id(attendance_id, "attendance_id")
        with self._transaction():
            record = self._attendance.get_by_id(attendance_id, for_update=True)
            entry = self._attendance.get_overtime(attendance_id, for_update=True) if record else None
            if not entry:
                raise NotFoundError("Overtime tracking record not found")
            if entry.is_approved:
                raise ConflictError("Overtime is already approved")

            now = self._clock()
            self._attendance.approve_overtime(attendance_id, actor.actor_id, now)
            approved = replace(entry, is_approved=True, approved_by=actor.actor_id, approved_at=now)
            self._audit.record(
                actor,
                AuditAction.UPDATE,
                before=record,
                after=record,
                reason=reason or f"{REASON_APPROVE_OVERTIME}: {format_duration(entry.overtime_minutes)}",
            )

        logger.info(
            "Approved %s overtime minutes for attendance=%s by actor=%s",
            entry.overtime_minutes, attendance_id, actor.actor_id,
        )
        return approved

    def update_record(
        self,
        actor: Actor,
        *,
        attendance_id: Any = None,
        employee_id: Any = None,
        work_date: Any = None,
        check_in: Any = None,
        check_out: Any = None,
        break_duration_hours: Any = None,
        status: Any = None,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        """Overwrite any subset of fields; lateness, early departure and overtime stay as stored."""
        with self._transaction():
            existing = self._resolve(attendance_id, employee_id, work_date)
            changes: dict = {}

            new_in = parse_optional_instant(check_in, "check_in", on_date=existing.work_date)
            new_out = parse_optional_instant(check_out, "check_out", on_date=existing.work_date)
            if new_in is not None:
                changes["check_in"] = new_in
            if new_out is not None:
                changes["check_out"] = new_out

            final_in = changes.get("check_in", existing.check_in)
            final_out = changes.get("check_out", existing.check_out)
            if final_out is not None and final_in is None:
                raise ValidationError("Cannot set check-out time without a check-in time")
            if final_in is not None and final_out is not None:
                require_checkout_after_checkin(final_in, final_out)
                changes["working_minutes"] = working_minutes(final_in, final_out)

            if break_duration_hours is not None and break_duration_hours != "":
                changes["break_minutes"] = hours_to_minutes(
                    require_hours(break_duration_hours, "break_duration_hours")
                )

            if status is not None and status != "":
                try:
                    new_status = AttendanceStatus(status)
                except ValueError:
                    raise ValidationError(f"Invalid status: {status}")
                changes["status"] = new_status

            if changes.get("status", existing.status) == AttendanceStatus.ABSENT and (final_in or final_out):
                raise ValidationError("An absent record cannot carry check-in or check-out times")

            if notes is not None:
                changes["notes"] = (NoteEntry(NoteTag.USER, notes.strip()),) if notes.strip() else ()

            record = replace(existing, **changes)
            return self._save(actor, existing, record, reason or REASON_UPDATE)

    def delete_record(
        self,
        actor: Actor,
        *,
        attendance_id: Any = None,
        employee_id: Any = None,
        work_date: Any = None,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        with self._transaction():
            existing = self._resolve(attendance_id, employee_id, work_date)
            # Audit first: the entry must exist before the row it describes is gone.
            self._audit.record(actor, AuditAction.DELETE, before=existing, after=None, reason=reason or REASON_DELETE)
            self._attendance.delete(existing.attendance_id)

        logger.info(
            "Deleted attendance %s (employee=%s date=%s) by actor=%s",
            existing.attendance_id, existing.employee_id, existing.work_date, actor.actor_id,
        )
        return existing

    def bulk_mark(
        self,
        actor: Actor,
        *,
        employee_ids: Iterable[Any],
        work_date: Any = None,
        status: Any = AttendanceStatus.PRESENT.value,
        notes: Optional[str] = None,
    ) -> BulkMarkResult:
        ids = list(employee_ids or [])
        if not ids:
            raise ValidationError("employee_ids is required")
        day = coerce_date(work_date, "work_date") if work_date else self._clock().date()
        try:
            target = AttendanceStatus(status or AttendanceStatus.PRESENT.value)
        except ValueError:
            raise ValidationError(f"Invalid status: {status}")
        if target not in BULK_STATUSES:
            raise ValidationError("Bulk marking supports present, absent or on_leave")

        result = BulkMarkResult()
        for raw_id in ids:
            try:
                result.marked.append(self._mark_one(actor, raw_id, day, target, notes))
            except DomainError as e:
                result.failed.append({"employee_id": raw_id, "error": str(e)})
            except Exception:
                logger.exception("Bulk marking failed for employee %s on %s", raw_id, day)
                result.failed.append({"employee_id": raw_id, "error": "Internal error"})

        logger.info(
            "Bulk marked %s as %s: %s ok, %s failed",
            day, target.value, len(result.marked), len(result.failed),
        )
        return result

    def _mark_one(
        self, actor: Actor, raw_id: Any, day: date, target: AttendanceStatus, notes: Optional[str]
    ) -> AttendanceRecord:
        employee_id = require_int_id(raw_id, "employee_id")
        if not self._employees.exists(employee_id):
            raise NotFoundError("Employee not found")

        with self._transaction():
            existing = self._attendance.get_for_employee_and_date(employee_id, day, for_update=True)
            fields: dict = dict(
                status=target,
                is_manual_entry=True,
                approved_by=actor.actor_id,
                approved_at=self._clock(),
            )
            if notes and notes.strip():
                fields["notes"] = (NoteEntry(NoteTag.USER, notes.strip()),)
            if target == AttendanceStatus.ABSENT:
                fields.update(
                    check_in=None,
                    check_out=None,
                    working_minutes=0,
                    overtime_minutes=0,
                    is_late=False,
                    late_minutes=0,
                    is_early_departure=False,
                    early_departure_minutes=0,
                )

            if existing:
                record = replace(existing, **fields)
                self._attendance.update(record)
                if target == AttendanceStatus.ABSENT:
                    self._attendance.delete_overtime(record.attendance_id)
                action = AuditAction.UPDATE
            else:
                record = AttendanceRecord(attendance_id=None, employee_id=employee_id, work_date=day, **fields)
                record = replace(record, attendance_id=self._attendance.insert(record))
                action = AuditAction.CREATE

            self._audit.record(actor, action, before=existing, after=record, reason=REASON_BULK)
            return record

    def _resolve(self, attendance_id: Any, employee_id: Any, work_date: Any) -> AttendanceRecord:
        if attendance_id not in (None, ""):
            record = self._attendance.get_by_id(require_int_id(attendance_id, "attendance_id"), for_update=True)
        elif employee_id not in (None, "") and work_date not in (None, ""):
            record = self._attendance.get_for_employee_and_date(
                require_int_id(employee_id, "employee_id"),
                coerce_date(work_date, "work_date"),
                for_update=True,
            )
        else:
            raise ValidationError("Either attendance_id or employee_id and work_date are required")

        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _save(self, actor: Actor, before: AttendanceRecord, after: AttendanceRecord, reason: str) -> AttendanceRecord:
        self._attendance.update(after)
        self._audit.record(actor, AuditAction.UPDATE, before=before, after=after, reason=reason)
        logger.info("%s: attendance=%s actor=%s", reason, after.attendance_id, actor.actor_id)
        return after

    def _sync_overtime(self, record: AttendanceRecord) -> None:
        if record.overtime_minutes > 0:
            self._attendance.upsert_overtime(overtime_entry_for(record))
        else:
            self._attendance.delete_overtime(record.attendance_id)
