"""Shared validation utilities"""

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number for storage and comparison.

    Only whitespace is removed; leading zeros and other characters are kept
    because the member roster stores local numbers as typed.

    Args:
        phone: Phone number string, possibly with spaces or tabs

    Returns:
        Phone number without any whitespace, or the input when empty
    """
    if not phone:
        return phone
    return _WHITESPACE.sub("", phone)


def slugify_status_key(label: str) -> str:
    """
    Derive a call status key from a label.

    Lowercases, replaces every run of characters outside ``a-z0-9`` with a
    single dash and trims leading/trailing dashes, e.g. ``"No Answer"`` ->
    ``"no-answer"``.
    """
    key = re.sub(r"[^a-z0-9]", "-", label.strip().lower())
    key = re.sub(r"-+", "-", key)
    return key.strip("-")


def validate_required_name(name: Optional[str]) -> str:
    """
    Validate a display name.

    Raises:
        ValueError: If the name is missing or blank
    """
    if name is None or not name.strip():
        raise ValueError("Name cannot be empty")
    return name.strip()


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
