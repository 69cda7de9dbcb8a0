import re
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from email_validator import validate_email, EmailNotValidError

from ..core.exceptions import ValidationError

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
PHONE_PATTERN = re.compile(r"^[0-9+\-\s()]{8,20}$")
MIN_PASSWORD_LENGTH = 6
MIN_ID = 1
MAX_ID = 2 ** 63 - 1


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def require_fields(data: Mapping[str, Any], fields: Sequence[str], labels: Optional[Mapping[str, str]] = None) -> None:
    """Raise for the first field in ``fields`` that is missing or blank."""
    labels = labels or {}
    for field in fields:
        if is_blank(data.get(field)):
            label = labels.get(field, field[:1].upper() + field[1:])
            raise ValidationError(field, f"{label} is required")


def parse_date(field: str, value: str, reason: str = "Invalid date format") -> date:
    """Parse a strict YYYY-MM-DD calendar date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError):
        raise ValidationError(field, reason)


def normalize_time(field: str, value: str) -> str:
    """Accept H:MM or HH:MM (24-hour) and return zero-padded HH:MM."""
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError(field, "Invalid time format")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_id(field: str, value: Any, label: str) -> int:
    """Coerce a numeric identifier coming from a JSON body.

    Only ASCII digits are accepted and the result must fit a signed 64-bit
    primary key.
    """
    if isinstance(value, bool):
        raise ValidationError(field, f"Invalid {label}")
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdecimal()):
            raise ValidationError(field, f"Invalid {label}")
        try:
            value = int(value)
        except ValueError:
            raise ValidationError(field, f"Invalid {label}")
    if not isinstance(value, int) or not MIN_ID <= value <= MAX_ID:
        raise ValidationError(field, f"Invalid {label}")
    return value


def check_email(value: str) -> str:
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError:
        raise ValidationError("email", "Invalid email format")


def check_password(value: str) -> None:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def check_phone(value: str) -> None:
    if not PHONE_PATTERN.match(value):
        raise ValidationError("phone", "Invalid phone number format")
