"""
JST/UTC normalization helpers.

Appointment and schedule times are entered and displayed in Japan Standard Time
but stored as naive UTC datetimes. JST is a fixed +09:00 offset with no DST,
so conversions are plain offset arithmetic.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

JST = timezone(timedelta(hours=9))
TIMEZONE_NAME = "Asia/Tokyo"

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def utc_now() -> datetime:
    """Current time as naive UTC (the storage representation)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_date(date_str: str) -> date:
    if not isinstance(date_str, str) or not DATE_PATTERN.match(date_str):
        raise ValueError(f"Invalid date format: {date_str!r} (expected YYYY-MM-DD)")
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def parse_time(time_str: str) -> tuple[int, int]:
    """Parse HH:MM (24h) into (hour, minute)"""
    match = TIME_PATTERN.match(time_str or "")
    if not match:
        raise ValueError(f"Invalid time format: {time_str!r} (expected HH:MM)")
    return int(match.group(1)), int(match.group(2))


def jst_to_utc(date_str: str, time_str: str) -> datetime:
    """Convert a JST wall-clock date and time to a naive UTC datetime"""
    day = _parse_date(date_str)
    hour, minute = parse_time(time_str)
    local = datetime(day.year, day.month, day.day, hour, minute, tzinfo=JST)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def jst_date_to_utc(date_str: str) -> datetime:
    """UTC instant of JST midnight for the given date"""
    return jst_to_utc(date_str, "00:00")


def create_jst_date(date_str: str, hour: int, minute: int) -> datetime:
    """Build a UTC instant from JST components; minutes past 59 roll into the hour"""
    return jst_date_to_utc(date_str) + timedelta(hours=hour, minutes=minute)


def utc_to_jst(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return _as_aware_utc(value).astimezone(JST)


def utc_to_jst_date_string(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return utc_to_jst(value).strftime("%Y-%m-%d")


def utc_to_jst_time_string(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return utc_to_jst(value).strftime("%H:%M")


def get_current_jst_date() -> str:
    return datetime.now(JST).strftime("%Y-%m-%d")


def jst_day_range(date_str: str) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC range covering one JST calendar day"""
    start = jst_date_to_utc(date_str)
    return start, start + timedelta(days=1)


def jst_month_range(month_str: str) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC range covering one JST calendar month (YYYY-MM)"""
    if not isinstance(month_str, str) or not MONTH_PATTERN.match(month_str):
        raise ValueError(f"Invalid month format: {month_str!r} (expected YYYY-MM)")
    year, month = (int(part) for part in month_str.split("-"))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    start = jst_date_to_utc(f"{year:04d}-{month:02d}-01")
    end = jst_date_to_utc(f"{next_year:04d}-{next_month:02d}-01")
    return start, end


def is_today(value: Optional[datetime]) -> bool:
    if value is None:
        return False
    return utc_to_jst_date_string(value) == get_current_jst_date()


def get_timezone() -> str:
    return TIMEZONE_NAME


def to_utc_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a stored datetime as ISO-8601 UTC with a Z suffix"""
    if value is None:
        return None
    return _as_aware_utc(value).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string (Z or offset allowed) into naive UTC"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return _as_aware_utc(parsed).replace(tzinfo=None)
