"""Slot arithmetic on HH:MM wall-clock times"""

from datetime import datetime, timedelta

from ...utils.timezone import parse_time

SLOT_MINUTES = 30
BOARD_START_HOUR = 9
BOARD_END_HOUR = 18


def to_minutes(time_str: str) -> int:
    hour, minute = parse_time(time_str)
    return hour * 60 + minute


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def split_into_slots(start_time: str, end_time: str, step: int = SLOT_MINUTES) -> list[tuple[str, str]]:
    """
    Split a working window into consecutive slots of `step` minutes.

    A trailing partial slot that would overrun end_time is dropped, so
    09:00-10:45 yields 09:00, 09:30 and 10:00 only.
    """
    start, end = to_minutes(start_time), to_minutes(end_time)
    slots = []
    cursor = start
    while cursor + step <= end:
        slots.append((format_minutes(cursor), format_minutes(cursor + step)))
        cursor += step
    return slots


def board_time_slots() -> list[str]:
    """Assignment board columns: 09:00 .. 17:30 in 30-minute steps"""
    return [
        format_minutes(minutes)
        for minutes in range(BOARD_START_HOUR * 60, BOARD_END_HOUR * 60, SLOT_MINUTES)
    ]


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap: touching edges do not overlap"""
    return start_a < end_b and start_b < end_a


def appointment_end(scheduled_at: datetime, duration_minutes: int) -> datetime:
    return scheduled_at + timedelta(minutes=duration_minutes or SLOT_MINUTES)
