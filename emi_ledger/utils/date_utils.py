"""Date and timezone helpers for ledger timestamps"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from backends that drop the offset (SQLite)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    IANA zone by name, or None for the server's local zone.

    None is kept instead of a snapshot of the current offset so local
    midnights are computed with the system's DST rules for each date.

    Raises:
        ValueError: If name is not a known IANA zone
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


def _local_midnight(day: date, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        # Naive astimezone() resolves the offset from the system rules for that instant
        return datetime.combine(day, time.min).astimezone()
    return datetime.combine(day, time.min, tzinfo=tz)


def day_bounds_utc(day: date, tz: Optional[tzinfo]) -> Tuple[datetime, datetime]:
    """Half-open [start, end) UTC window covering one calendar day in tz (None = server local)"""
    start = _local_midnight(day, tz)
    end = _local_midnight(day + timedelta(days=1), tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def today_in(tz: Optional[tzinfo]) -> date:
    if tz is None:
        return date.today()
    return datetime.now(tz).date()
