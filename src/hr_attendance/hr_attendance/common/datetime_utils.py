from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional, Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_local_naive(value: datetime) -> datetime:
    """Drop tzinfo after converting an aware datetime to local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_instant(value: Union[datetime, str, None], field_name: str) -> datetime:
    """Accept a datetime or an ISO-8601 string; anything else is invalid."""
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return to_local_naive(datetime.fromisoformat(raw))
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name} format")


def parse_optional_instant(
    value: Union[datetime, str, None],
    field_name: str,
    *,
    on_date: Optional[date] = None,
) -> Optional[datetime]:
    """Like parse_instant, but None stays None and a bare HH:MM is combined with on_date."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and on_date is not None and len(value.strip()) <= 8 and ":" in value:
        try:
            t = time.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid {field_name} format")
        return datetime.combine(on_date, t)
    return parse_instant(value, field_name)


def coerce_date(value: Union[date, datetime, str, None], field_name: str) -> date:
    if isinstance(value, datetime):
        return to_local_naive(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        try:
            return parse_iso_date(raw[:10])
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name} format")


def floor_minutes(delta: timedelta) -> int:
    """Whole minutes in delta, rounded toward negative infinity."""
    return int(delta.total_seconds() // 60)


def at_time(day: date, t: time) -> datetime:
    return datetime.combine(day, t)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each date in [start, end] ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def format_duration(minutes: int) -> str:
    """Render minutes as ``1h 30m`` / ``2h`` / ``45m``."""
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
    return f"{mins}m"
