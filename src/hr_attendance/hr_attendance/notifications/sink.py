from __future__ import annotations

import logging
from typing import Protocol

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import Alert

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def alert(self, alert: Alert) -> None:
        raise NotImplementedError


class MySQLAlertSink(NotificationSink):
    """Stores alerts in ``attendance_alerts`` for the dashboard to pick up."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def alert(self, alert: Alert) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_alerts(employee_id, alert_type, alert_date, severity, message)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    alert.employee_id,
                    alert.alert_type.value,
                    alert.alert_date,
                    alert.severity.value,
                    alert.message,
                ),
            )


class LoggingAlertSink(NotificationSink):
    def alert(self, alert: Alert) -> None:
        logger.warning(
            "Attendance alert employee=%s type=%s severity=%s: %s",
            alert.employee_id, alert.alert_type.value, alert.severity.value, alert.message,
        )
