from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_actor, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    """Manual runs share the scheduler lock and answer 409 while a pass is in progress."""
    backfill = container.backfill_service
    scheduler = app.extensions["attendance_scheduler"]

    @app.route("/api/attendance/backfill", methods=["POST"], endpoint="attendance_backfill_all")
    def backfill_all():
        current_actor()
        summary = scheduler.run_now("full backfill", backfill.backfill_all)
        return jsonify({"success": True, "message": "Backfill completed", **summary.to_dict()})

    @app.route("/api/attendance/auto-mark", methods=["POST"], endpoint="attendance_auto_mark")
    def auto_mark():
        current_actor()
        data = json_body()
        summary = scheduler.run_now("auto-mark", lambda: backfill.mark_day(data.get("date")))
        message = "Auto-attendance completed" if summary.working_day else "Not a working day"
        return jsonify({"success": True, "message": message, **summary.to_dict()})

    @app.route("/api/attendance/auto-mark/range", methods=["POST"], endpoint="attendance_auto_mark_range")
    def auto_mark_range():
        current_actor()
        data = json_body()
        results = scheduler.run_now(
            "auto-mark range", lambda: backfill.mark_range(data.get("start_date"), data.get("end_date"))
        )
        return jsonify({
            "success": True,
            "message": f"Auto-attendance completed for {len(results)} days",
            "results": [r.to_dict() for r in results],
        })
