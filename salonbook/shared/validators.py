"""Shared validation utilities"""

import re
from datetime import date, datetime, time
from typing import Optional

from ..config import DEFAULT_PHONE_COUNTRY_CODE


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to the canonical "+digits" form.

    Args:
        phone: Phone number string in various formats ("+380 67 123-45-67", "0671234567")

    Returns:
        Phone number as "+" followed by digits only (+380671234567)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Local format with a trunk zero, e.g. 067 123 45 67
    if len(digits) == 10 and digits.startswith("0"):
        digits = f"{DEFAULT_PHONE_COUNTRY_CODE}{digits}"

    # E.164 allows up to 15 digits
    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone number must contain 10 to 15 digits")

    return f"+{digits}"


def phone_digits(phone: str) -> str:
    """Digits of a phone number without the leading plus (used in Telegram deep links)"""
    return re.sub(r"\D", "", phone or "")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def parse_time_of_day(value: str) -> time:
    """
    Parse "HH:MM" into a time.

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid time format: {value!r}. Expected HH:MM") from e


def parse_iso_date(value: str) -> date:
    """Parse "YYYY-MM-DD" into a date"""
    try:
        return date.fromisoformat(value.strip())
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid date format: {value!r}. Expected YYYY-MM-DD") from e
