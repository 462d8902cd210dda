from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    def attendance_report():
        data = container.report_service.summarize(
            request.args.get("start_date"),
            request.args.get("end_date"),
            employee_id=request.args.get("employee_id"),
        )
        return jsonify({"success": True, "rows": data.rows, "summary": data.summary})

    @app.route("/api/attendance/overtime", methods=["GET"], endpoint="attendance_overtime_list")
    def overtime_list():
        report = container.report_service.overtime(
            request.args.get("start_date"),
            request.args.get("end_date"),
            employee_id=request.args.get("employee_id"),
            is_approved=request.args.get("is_approved"),
        )
        return jsonify(
            {"success": True, "overtime": [e.to_dict() for e in report.entries], "summary": report.summary}
        )
