"""Shared validation utilities"""

import re
from datetime import datetime
from typing import Optional

from ..utils.timezone import DATE_PATTERN, MONTH_PATTERN, parse_time

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
GENDERS = ("male", "female", "other")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number and normalize it to digits with an optional leading +.

    Accepts domestic (e.g. 090-1234-5678) and international (+81 90 1234 5678) forms.
    """
    if not phone:
        return phone

    stripped = phone.strip()
    digits = re.sub(r"\D", "", stripped)
    if not 10 <= len(digits) <= 15:
        raise ValueError("Phone number must contain 10 to 15 digits")
    return f"+{digits}" if stripped.startswith("+") else digits


def validate_date_string(value: Optional[str]) -> Optional[str]:
    """Validate a YYYY-MM-DD date string"""
    if value is None:
        return value
    if not DATE_PATTERN.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid calendar date: {value}") from e
    return value


def validate_month_string(value: Optional[str]) -> Optional[str]:
    """Validate a YYYY-MM month string"""
    if value is None:
        return value
    if not MONTH_PATTERN.match(value):
        raise ValueError("Month must be in YYYY-MM format")
    return value


def validate_time_range(start_time: str, end_time: str) -> None:
    """Raise ValueError unless start_time is strictly before end_time"""
    if parse_time(start_time) >= parse_time(end_time):
        raise ValueError("Start time must be before end time")


def validate_gender(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if value not in GENDERS:
        raise ValueError(f"Gender must be one of: {', '.join(GENDERS)}")
    return value
