from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import settings
from .errors import InvalidInputError


def resolve_timezone(tz: tzinfo | str | None = None) -> tzinfo:
    if isinstance(tz, tzinfo):
        return tz
    name = tz or settings.timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidInputError(f"unknown timezone: {name}") from exc


def ensure_aware(value: datetime, tz: tzinfo) -> datetime:
    # Naive reference instants are civil times in the accounting timezone.
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=tz)
    return value


def parse_instant(value: Any) -> datetime | None:
    """Parse an upstream swipe timestamp into an aware UTC datetime.

    Upstream feeds send ISO-8601 strings without an offset; those are UTC.
    Returns None for anything that cannot be read as an instant.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None or parsed.tzinfo.utcoffset(parsed) is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def local_date(instant: datetime, tz: tzinfo) -> date:
    return instant.astimezone(tz).date()


def parse_date(date_value: str | date, field: str = "date") -> date:
    if isinstance(date_value, datetime):
        return date_value.date()
    if isinstance(date_value, date):
        return date_value
    try:
        return datetime.strptime(str(date_value).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidInputError(f"{field} must be in YYYY-MM-DD format") from exc


def iter_days(start: date, end: date):
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


def round_half_up(value: float) -> int:
    # Matches upstream HR systems: x.5 always rounds away from zero for positive totals.
    return int(math.floor(value + 0.5))


def format_dt(value: datetime | None, tz: tzinfo) -> str | None:
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S") if value else None


def format_time_12h(value: datetime | None, tz: tzinfo) -> str | None:
    return value.astimezone(tz).strftime("%I:%M:%S %p") if value else None


def minutes_to_hhmm(value: int | None) -> str | None:
    if value is None or value < 0:
        return None
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def format_work_time(total_minutes: int) -> str:
    hours = total_minutes // 60
    minutes = total_minutes % 60
    return f"{hours}h {minutes}m"


def format_hours(hours: float) -> str:
    whole_hours = math.floor(hours)
    minutes = round_half_up((hours - whole_hours) * 60)
    if minutes == 60:
        whole_hours += 1
        minutes = 0
    return f"{whole_hours}h {minutes}m"
