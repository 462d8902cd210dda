from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, json_body
from ..container import Container


def _coordinates(data: dict):
    if data.get("latitude") in (None, "") or data.get("longitude") in (None, ""):
        return None
    return data["latitude"], data["longitude"]


def _target(data: dict) -> dict:
    return {
        "attendance_id": data.get("attendance_id"),
        "employee_id": data.get("employee_id"),
        "work_date": data.get("work_date"),
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service
    corrections = container.correction_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def check_in():
        data = json_body()
        record = service.record_check_in(
            current_actor(),
            data.get("employee_id"),
            data.get("check_in_time"),
            expected_check_in_time=data.get("expected_check_in_time"),
            work_date=data.get("work_date"),
            location=data.get("location"),
            coordinates=_coordinates(data),
            notes=data.get("notes"),
        )
        message = "Check-in recorded successfully"
        if record.is_late:
            message += " (Late arrival)"
        return jsonify({
            "success": True,
            "message": message,
            "attendance": record.to_dict(),
            "is_late": record.is_late,
            "late_minutes": record.late_minutes,
        }), 201

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    def check_out():
        data = json_body()
        record = service.record_check_out(
            current_actor(),
            data.get("employee_id"),
            data.get("check_out_time"),
            expected_check_out_time=data.get("expected_check_out_time"),
            work_date=data.get("work_date"),
            location=data.get("location"),
            coordinates=_coordinates(data),
            notes=data.get("notes"),
        )
        return jsonify({
            "success": True,
            "message": "Check-out recorded successfully",
            "attendance": record.to_dict(),
            "working_minutes": record.working_minutes,
            "is_early_departure": record.is_early_departure,
            "early_departure_minutes": record.early_departure_minutes,
            "overtime_minutes": record.overtime_minutes,
        })

    @app.route("/api/attendance/absent", methods=["POST"], endpoint="attendance_mark_absent")
    def mark_absent():
        data = json_body()
        record = service.mark_absent(
            current_actor(), data.get("employee_id"), data.get("work_date"), reason=data.get("reason")
        )
        return jsonify({"success": True, "message": "Employee marked as absent", "attendance": record.to_dict()})

    @app.route("/api/attendance/<int:employee_id>/<work_date>", methods=["GET"], endpoint="attendance_get")
    def get_record(employee_id: int, work_date: str):
        record = service.get_record(employee_id, work_date)
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/attendance/edit/check-in", methods=["PUT"], endpoint="attendance_edit_check_in")
    def edit_check_in():
        data = json_body()
        record = corrections.edit_check_in(
            current_actor(),
            check_in_time=data.get("check_in_time"),
            expected_check_in_time=data.get("expected_check_in_time"),
            reason=data.get("reason"),
            **_target(data),
        )
        return jsonify({"success": True, "message": "Check-in time updated", "attendance": record.to_dict()})

    @app.route("/api/attendance/edit/check-out", methods=["PUT"], endpoint="attendance_edit_check_out")
    def edit_check_out():
        data = json_body()
        record = corrections.edit_check_out(
            current_actor(),
            check_out_time=data.get("check_out_time"),
            expected_check_out_time=data.get("expected_check_out_time"),
            reason=data.get("reason"),
            **_target(data),
        )
        return jsonify({"success": True, "message": "Check-out time updated", "attendance": record.to_dict()})

    @app.route("/api/attendance/edit/break", methods=["PUT"], endpoint="attendance_edit_break")
    def edit_break():
        data = json_body()
        record = corrections.edit_break(
            current_actor(),
            break_duration_hours=data.get("break_duration_hours"),
            reason=data.get("reason"),
            **_target(data),
        )
        return jsonify({"success": True, "message": "Break duration updated", "attendance": record.to_dict()})

    @app.route("/api/attendance/breaks", methods=["POST"], endpoint="attendance_add_break")
    def add_break():
        data = json_body()
        record = corrections.add_break(
            current_actor(),
            employee_id=data.get("employee_id"),
            work_date=data.get("work_date"),
            break_type=data.get("break_type"),
            duration_hours=data.get("duration_hours"),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "message": "Break added", "attendance": record.to_dict()}), 201

    @app.route("/api/attendance/overtime", methods=["PUT"], endpoint="attendance_set_overtime")
    def set_overtime():
        data = json_body()
        record = corrections.set_overtime(
            current_actor(),
            overtime_hours=data.get("overtime_hours"),
            reason=data.get("reason"),
            **_target(data),
        )
        return jsonify({"success": True, "message": "Overtime updated", "attendance": record.to_dict()})

    @app.route(
        "/api/attendance/overtime/<int:attendance_id>/approve", methods=["PUT"], endpoint="attendance_approve_overtime"
    )
    def approve_overtime(attendance_id: int):
        reason = (request.get_json(silent=True) or {}).get("reason")
        entry = corrections.approve_overtime(current_actor(), attendance_id=attendance_id, reason=reason)
        return jsonify({"success": True, "message": "Overtime approved", "overtime": entry.to_dict()})

    @app.route("/api/attendance/records/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    def update_record(attendance_id: int):
        data = json_body()
        record = corrections.update_record(
            current_actor(),
            attendance_id=attendance_id,
            check_in=data.get("check_in"),
            check_out=data.get("check_out"),
            break_duration_hours=data.get("break_duration_hours"),
            status=data.get("status"),
            notes=data.get("notes"),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "message": "Attendance record updated", "attendance": record.to_dict()})

    @app.route("/api/attendance/records/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    def delete_record(attendance_id: int):
        reason = (request.get_json(silent=True) or {}).get("reason")
        record = corrections.delete_record(current_actor(), attendance_id=attendance_id, reason=reason)
        return jsonify({"success": True, "message": "Attendance record deleted", "attendance": record.to_dict()})

    @app.route("/api/attendance/records/<int:attendance_id>/audit", methods=["GET"], endpoint="attendance_audit")
    def audit_history(attendance_id: int):
        entries = container.audit_trail.history(attendance_id)
        return jsonify({"success": True, "entries": [e.to_dict() for e in entries]})

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="attendance_bulk_mark")
    def bulk_mark():
        data = json_body()
        result = corrections.bulk_mark(
            current_actor(),
            employee_ids=data.get("employee_ids") or [],
            work_date=data.get("work_date"),
            status=data.get("status"),
            notes=data.get("notes"),
        )
        return jsonify({"success": True, **result.to_dict()})
