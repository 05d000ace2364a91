"""Shared validation utilities"""

import re
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PHONE_ALLOWED = re.compile(r"^[+\d][\d\s().-]*$")


def empty_to_none(value: Optional[str]) -> Optional[str]:
    """Blank form fields are stored as NULL"""
    if value is None:
        return None
    value = value.strip()
    return value or None


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
    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate an international phone number, keeping the user's formatting.

    Raises:
        ValueError: If the number has too few digits or stray characters
    """
    if not phone:
        return phone

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if not PHONE_ALLOWED.match(phone) or not 6 <= len(digits) <= 15:
        raise ValueError("Invalid phone number")

    return phone


def validate_currency(currency: Optional[str]) -> Optional[str]:
    """ISO 4217 style three letter code, uppercased"""
    if not currency:
        return currency

    currency = currency.strip().upper()
    if not re.match(r"^[A-Z]{3}$", currency):
        raise ValueError("Currency must be a 3-letter code")

    return currency


def validate_time_of_day(value: str) -> str:
    """HH:MM (24h)"""
    value = (value or "").strip()
    match = re.match(r"^(\d{1,2}):(\d{2})(?::\d{2})?$", value)
    if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        raise ValueError("Time must be in HH:MM format")
    return f"{int(match.group(1)):02d}:{match.group(2)}"
