"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time, timedelta

# Accepted band around a caller-supplied expected time.
CHECK_IN_EARLIEST = timedelta(hours=1)
CHECK_IN_LATEST = timedelta(hours=9)
CHECK_OUT_EARLIEST = timedelta(hours=1)
CHECK_OUT_LATEST = timedelta(hours=2)

MIN_WORKING_MINUTES = 240

# Shift defaults when a shift row leaves them empty.
DEFAULT_GRACE_PERIOD_MINUTES = 15
DEFAULT_EARLY_DEPARTURE_THRESHOLD = 15
DEFAULT_OVERTIME_START_AFTER_MINUTES = 30

DEFAULT_OVERTIME_RATE = "1.5"

# Alerts escalate to HIGH above this many minutes.
ALERT_HIGH_SEVERITY_MINUTES = 30

ABSENCE_LOOKBACK_DAYS = 7
ABSENCE_ALERT_THRESHOLD = 3

# Monday=0 ... Sunday=6
WEEKEND_DAYS = frozenset({5, 6})

# Synthesized attendance window used by the backfill.
DEFAULT_WORK_START = time(8, 0)
DEFAULT_WORK_END = time(17, 0)

AUTO_LOCATION = "Auto-System"
AUTO_LOCATION_BACKFILL = "Auto-System-Backfill"
AUTO_NOTE = "Auto-marked attendance - No manual check-in/check-out"
AUTO_NOTE_BACKFILL = "Auto-marked attendance (Backfill) - No manual check-in/check-out"

OUTSIDE_GEOFENCE_NOTE = "[Outside geofence]"

EARTH_RADIUS_METERS = 6_371_000

BACKFILL_ROLES = ("ROLE_EMPLOYEE", "ROLE_MANAGER")

REASON_CHECK_IN = "Admin marked check-in"
REASON_CHECK_OUT = "Admin marked check-out"
REASON_ABSENT = "Admin marked as absent"
REASON_EDIT_CHECK_IN = "Admin edited check-in time"
REASON_EDIT_CHECK_OUT = "Admin edited check-out time"
REASON_EDIT_BREAK = "Admin edited break duration"
REASON_OVERTIME = "Admin added/edited overtime hours"
REASON_APPROVE_OVERTIME = "Admin approved overtime"
REASON_UPDATE = "Admin updated attendance record"
REASON_DELETE = "Admin deleted attendance record"
REASON_BULK = "Bulk attendance marking"
REASON_AUTO_MARK = "Auto-marked attendance"
REASON_BACKFILL = "Auto-marked attendance (Backfill)"

DEFAULT_ABSENT_NOTE = "Marked absent by admin"
