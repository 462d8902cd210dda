from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Status stored on an attendance record."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    EARLY_DEPARTURE = "early_departure"
    ON_LEAVE = "on_leave"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AlertType(str, Enum):
    LATE_ARRIVAL = "late_arrival"
    EARLY_DEPARTURE = "early_departure"
    CONTINUOUS_ABSENT = "continuous_absent"


class AlertSeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class NoteTag(str, Enum):
    """Kind of line in an attendance record's running note."""

    USER = "user"
    GEOFENCE = "geofence"
    BREAK = "break"
    SYSTEM = "system"
    ABSENCE = "absence"


class LocationLogType(str, Enum):
    CHECK_IN = "checkin"
    CHECK_OUT = "checkout"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
