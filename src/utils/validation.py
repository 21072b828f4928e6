"""
Client-side input checks.

Each ``validate_*`` returns an error message, or None when the value is
acceptable. ``ensure_valid`` raises the first failure as a ValidationError so
bad input never reaches the network.
"""

import re
from typing import Callable, Dict, Optional

from utils.errors import ValidationError

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-z]{2,}(\.[a-z]{2,})?$")
_FULL_NAME_RE = re.compile(r"^[A-Z][a-z]*( [A-Z][a-z]*)*$")
_REPEATED_3 = re.compile(r"(.)\1{2,}")
_REPEATED_4 = re.compile(r"(.)\1{3,}")
_PLACE_CHARS = re.compile(r"^[A-Za-z\s\-']+$")
_BARANGAY_CHARS = re.compile(r"^[A-Za-z0-9\s\-']+$")
_STREET_CHARS = re.compile(r"^[A-Za-z0-9\s\-/.'#]+$")


def validate_email(email: str) -> Optional[str]:
    email = (email or "").strip()
    if not email:
        return "Email is required."
    if len(email.split("@")[0]) > 64:
        return "The part before the '@' cannot exceed 64 characters."
    if not _EMAIL_RE.match(email):
        return "Invalid email format. Please enter a valid email address."
    return None


def validate_login_password(password: str) -> Optional[str]:
    if not password:
        return "Password is required."
    return None


def validate_new_password(password: str) -> Optional[str]:
    if len(password or "") < 8:
        return "Password must be at least 8 characters long"
    if not re.search(r"\d", password):
        return "Password must contain at least one number"
    return None


def validate_full_name(full_name: str) -> Optional[str]:
    name = (full_name or "").strip()
    if not name:
        return "Full name is required."
    if re.search(r"[^A-Za-z\s]", name):
        return "Full name must not contain numbers or special characters."
    name = re.sub(r"\s+", " ", name)
    if not _FULL_NAME_RE.match(name):
        return "Each word must start with a capital letter and only contain letters."
    if len(name) < 5:
        return "Full name must be at least 5 characters long."
    if len(name) > 50:
        return "Full name must be at most 50 characters long."
    words = name.split(" ")
    if len(words) < 2:
        return "Please enter at least a first and last name."
    for word in words:
        if len(word) > 20:
            return "Each name part must be at most 20 characters long."
        if _REPEATED_3.search(word.lower()):
            return "Name parts must not contain repeated characters."
    return None


def validate_name_part(value: str, label: str = "Name") -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return f"{label} is required."
    if re.search(r"[^A-Za-z\s\-']", value):
        return f"{label} must only contain letters."
    if len(value) > 50:
        return f"{label} must be at most 50 characters long."
    return None


def validate_contact_number(number: str) -> Optional[str]:
    number = (number or "").strip()
    if not number:
        return "Contact number is required."
    if re.search(r"[^0-9]", number):
        return "Contact number must not contain letters or special characters."
    if not re.match(r"^09\d{9}$", number):
        return "Contact number must be a valid Philippine mobile number."
    if re.search(r"(\d)\1{3,}", number):
        return "Contact number must not contain 4 or more repeating digits."
    return None


def _validate_place(value: str, label: str, max_length: int, chars: re.Pattern, chars_msg: str) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return f"{label} is required."
    if not chars.match(value):
        return f"{label} must only contain {chars_msg}."
    if len(value) < 3:
        return f"{label} must be at least 3 characters long."
    if len(value) > max_length:
        return f"{label} must be at most {max_length} characters long."
    if _REPEATED_3.search(value.lower()):
        return f"{label} must not contain repeated characters."
    return None


def validate_province(value: str) -> Optional[str]:
    return _validate_place(
        value, "Province", 50, _PLACE_CHARS, "letters, spaces, hyphens, or apostrophes"
    )


def validate_city(value: str) -> Optional[str]:
    return _validate_place(
        value,
        "City/Municipality",
        60,
        _PLACE_CHARS,
        "letters, spaces, hyphens, or apostrophes",
    )


def validate_barangay(value: str) -> Optional[str]:
    return _validate_place(
        value,
        "Barangay",
        60,
        _BARANGAY_CHARS,
        "letters, numbers, spaces, hyphens, or apostrophes",
    )


def validate_street(value: str) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return "Street / Building / House No. is required."
    if not _STREET_CHARS.match(value):
        return (
            "Address must only contain letters, numbers, spaces, hyphens, "
            "slashes, apostrophes, periods, or # symbol."
        )
    if len(value) < 3:
        return "Address must be at least 3 characters long."
    if len(value) > 80:
        return "Address must be at most 80 characters long."
    if _REPEATED_4.search(value.lower()):
        return "Address must not contain long repeated characters."
    return None


def ensure_valid(checks: Dict[str, Callable[[], Optional[str]]]) -> None:
    """Run checks in order, raise the first failure tagged with its field."""
    for field, check in checks.items():
        error = check()
        if error:
            raise ValidationError(error, field=field)
