from __future__ import annotations

from dataclasses import dataclass

from .attendance.corrections import AttendanceCorrectionService
from .attendance.factory import ExpectationStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.service import AuditTrail
from .backfill.service import BackfillService
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeDirectory
from .geofence.mysql_geofence_repository import MySQLGeofenceRepository
from .geofence.service import GeofenceService, GeofenceValidator
from .notifications.dispatcher import AlertDispatcher
from .notifications.sink import LoggingAlertSink, MySQLAlertSink
from .reports.service import AttendanceReportService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .workdays.mysql_workday_repository import MySQLHolidayRepository, MySQLLeaveRepository
from .workdays.service import CalendarGate


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeDirectory
    shifts_repo: MySQLShiftRepository
    attendance_repo: MySQLAttendanceRepository
    audit_repo: MySQLAuditRepository
    geofence_repo: MySQLGeofenceRepository

    calendar: CalendarGate
    audit_trail: AuditTrail
    alert_dispatcher: AlertDispatcher
    attendance_service: AttendanceService
    correction_service: AttendanceCorrectionService
    backfill_service: BackfillService
    geofence_service: GeofenceService
    report_service: AttendanceReportService


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    employees_repo = MySQLEmployeeDirectory(conn)
    shifts_repo = MySQLShiftRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    audit_repo = MySQLAuditRepository(conn)
    geofence_repo = MySQLGeofenceRepository(conn)

    calendar = CalendarGate(MySQLHolidayRepository(conn), MySQLLeaveRepository(conn))
    audit_trail = AuditTrail(audit_repo)
    alert_dispatcher = AlertDispatcher([MySQLAlertSink(conn), LoggingAlertSink()])
    strategy_factory = ExpectationStrategyFactory(shifts_repo)

    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        audit_trail,
        strategy_factory=strategy_factory,
        geofence=GeofenceValidator(geofence_repo),
        alerts=alert_dispatcher,
        transaction=conn.transaction,
    )
    correction_service = AttendanceCorrectionService(
        attendance_repo,
        employees_repo,
        audit_trail,
        strategy_factory=strategy_factory,
        transaction=conn.transaction,
    )
    backfill_service = BackfillService(
        attendance_repo,
        employees_repo,
        calendar,
        audit_trail,
        transaction=conn.transaction,
    )
    geofence_service = GeofenceService(geofence_repo)
    report_service = AttendanceReportService(attendance_repo, employees_repo)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        geofence_repo=geofence_repo,
        calendar=calendar,
        audit_trail=audit_trail,
        alert_dispatcher=alert_dispatcher,
        attendance_service=attendance_service,
        correction_service=correction_service,
        backfill_service=backfill_service,
        geofence_service=geofence_service,
        report_service=report_service,
    )
