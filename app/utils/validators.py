# app/utils/validators.py
"""Contact-field checks shared by employee, parent contact and call log schemas."""

import re
from typing import Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MIN_PHONE_DIGITS = 10


def is_valid_email(value: Optional[str]) -> bool:
    """Blank is allowed; the field is optional everywhere."""
    if not value or not value.strip():
        return True
    return bool(EMAIL_RE.match(value.strip()))


def is_valid_phone(value: Optional[str]) -> bool:
    if not value or not value.strip():
        return True
    return len(re.sub(r"\D", "", value)) >= MIN_PHONE_DIGITS


def clean_email(value: Optional[str]) -> Optional[str]:
    if not is_valid_email(value):
        raise ValueError("Please enter a valid email address")
    return value.strip() if value and value.strip() else None


def clean_phone(value: Optional[str]) -> Optional[str]:
    if not is_valid_phone(value):
        raise ValueError(f"Phone number must contain at least {MIN_PHONE_DIGITS} digits")
    return value.strip() if value and value.strip() else None


def clean_time(value: Optional[str]) -> Optional[str]:
    """HH:MM, or None for blank."""
    if value is None or not value.strip():
        return None
    value = value.strip()[:5]
    if not TIME_RE.match(value):
        raise ValueError("Time must be HH:MM")
    return value
