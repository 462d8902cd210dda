from datetime import date
from types import SimpleNamespace

import pytest

from hr_attendance.main import create_app, serve_options

ACTOR = {"X-Actor-Id": "99"}


@pytest.fixture
def client(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = SimpleNamespace(
        attendance_service=world.service,
        correction_service=world.corrections,
        backfill_service=world.backfill,
        geofence_service=world.geofence_service,
        report_service=world.reports,
        audit_trail=world.audit_trail,
    )
    app = create_app(container=container)
    assert app.config["TESTING"] is True
    return app.test_client()


def check_in(client, **overrides):
    body = {
        "employee_id": 1,
        "check_in_time": "2024-01-15T09:20:00",
        "expected_check_in_time": "2024-01-15T09:00:00",
        "notes": "traffic",
    }
    body.update(overrides)
    return client.post("/api/attendance/check-in", json=body, headers=ACTOR)


def test_check_in_created(client, world):
    res = check_in(client)

    assert res.status_code == 201
    body = res.get_json()
    assert body["message"] == "Check-in recorded successfully (Late arrival)"
    assert body["late_minutes"] == 20
    assert body["attendance"]["notes"] == "traffic"
    assert world.audit.entries[0].actor_id == 99


def test_missing_actor_is_forbidden(client, world):
    res = client.post("/api/attendance/check-in", json={"employee_id": 1})

    assert res.status_code == 403
    assert res.get_json()["success"] is False
    assert world.attendance.records == {}


def test_duplicate_check_in_is_conflict(client):
    check_in(client)

    res = check_in(client)

    assert res.status_code == 409
    assert res.get_json()["message"] == "Employee has already checked in today"


def test_unknown_employee_is_not_found(client):
    assert check_in(client, employee_id=404).status_code == 404


def test_bad_time_is_validation_error(client):
    res = check_in(client, check_in_time="yesterday-ish")

    assert res.status_code == 400
    assert res.get_json()["message"] == "Invalid check_in_time format"


def test_check_out_and_fetch(client):
    check_in(client)
    res = client.post(
        "/api/attendance/check-out",
        json={
            "employee_id": 1,
            "check_out_time": "2024-01-15T17:00:00",
            "expected_check_out_time": "2024-01-15T17:00:00",
        },
        headers=ACTOR,
    )
    assert res.status_code == 200
    assert res.get_json()["working_minutes"] == 460

    res = client.get("/api/attendance/1/2024-01-15")

    assert res.status_code == 200
    assert res.get_json()["attendance"]["status"] == "late"


def test_delete_and_audit_history(client, world):
    attendance_id = check_in(client).get_json()["attendance"]["attendance_id"]

    res = client.delete(f"/api/attendance/records/{attendance_id}", json={"reason": "Entered twice"}, headers=ACTOR)
    assert res.status_code == 200

    entries = client.get(f"/api/attendance/records/{attendance_id}/audit").get_json()["entries"]
    assert [e["action_type"] for e in entries] == ["create", "delete"]
    assert entries[-1]["reason"] == "Entered twice"


def test_bulk_reports_partial_failure(client):
    res = client.post(
        "/api/attendance/bulk",
        json={"employee_ids": [1, 404], "work_date": "2024-01-15", "status": "absent"},
        headers=ACTOR,
    )

    body = res.get_json()
    assert res.status_code == 200
    assert body["total_processed"] == 2
    assert body["failed"] == [{"employee_id": 404, "error": "Employee not found"}]


def test_auto_mark_today_is_rejected(client):
    res = client.post("/api/attendance/auto-mark", json={"date": "2024-01-15"}, headers=ACTOR)

    assert res.status_code == 400


def test_auto_mark_previous_day(client, world):
    res = client.post("/api/attendance/auto-mark", json={"date": "2024-01-12"}, headers=ACTOR)

    assert res.status_code == 200
    assert res.get_json()["processed"] == 1
    assert world.attendance.get_for_employee_and_date(1, date(2024, 1, 12)) is not None


def test_geofence_crud(client):
    res = client.post(
        "/api/geofences", json={"name": "Depot", "latitude": 10.0, "longitude": 20.0}, headers=ACTOR
    )
    assert res.status_code == 201
    zone_id = res.get_json()["location"]["zone_id"]

    res = client.put(f"/api/geofences/{zone_id}", json={"radius_meters": 0}, headers=ACTOR)
    assert res.status_code == 400

    names = [z["name"] for z in client.get("/api/geofences").get_json()["locations"]]
    assert names == ["HQ", "Depot"]


def test_report(client):
    check_in(client)

    res = client.get("/api/attendance/report?start_date=2024-01-01&end_date=2024-01-31")

    assert res.status_code == 200
    assert res.get_json()["summary"][0]["late"] == 1


def test_unknown_route_keeps_404(client):
    res = client.get("/api/nothing-here")

    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_approve_overtime_and_list(client):
    attendance_id = check_in(client).get_json()["attendance"]["attendance_id"]
    client.put("/api/attendance/overtime", json={"attendance_id": attendance_id, "overtime_hours": 1}, headers=ACTOR)

    res = client.put(f"/api/attendance/overtime/{attendance_id}/approve", headers=ACTOR)
    assert res.status_code == 200
    assert res.get_json()["overtime"]["approved_by"] == 99

    res = client.put(f"/api/attendance/overtime/{attendance_id}/approve", headers=ACTOR)
    assert res.status_code == 409

    body = client.get("/api/attendance/overtime?start_date=2024-01-01&end_date=2024-01-31").get_json()
    assert body["summary"]["approved_overtime_minutes"] == 60
    assert [e["is_approved"] for e in body["overtime"]] == [True]


def test_approve_missing_overtime_is_not_found(client):
    res = client.put("/api/attendance/overtime/999/approve", headers=ACTOR)

    assert res.status_code == 404


def test_manual_backfill_conflicts_with_running_pass(client, world):
    scheduler = client.application.extensions["attendance_scheduler"]

    res = scheduler.run_now("scheduled backfill", lambda: client.post("/api/attendance/backfill", headers=ACTOR))

    assert res.status_code == 409
    assert "another attendance pass" in res.get_json()["message"]
    assert world.attendance.records == {}

    res = client.post("/api/attendance/auto-mark", json={"date": "2024-01-12"}, headers=ACTOR)
    assert res.status_code == 200


def test_reloader_stays_off_while_scheduler_runs(client):
    app = client.application
    app.config["DEBUG"] = True

    assert serve_options(app) == {"debug": True, "use_reloader": True}

    app.extensions["attendance_scheduler"] = SimpleNamespace(running=True)
    assert serve_options(app) == {"debug": True, "use_reloader": False}
