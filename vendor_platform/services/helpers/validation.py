"""
Input normalisation shared by the service layer.

Blueprints hand services raw JSON dicts; these helpers turn field values into
clean Python types or raise ``ValidationError`` with a field-level detail.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from email_validator import EmailNotValidError, validate_email

from vendor_platform.core.exceptions import ValidationError

_PHONE_RE = re.compile(r"^\+?[0-9\s\-()]{10,20}$")


def clean_text(data: dict, field: str, max_length: int, *, required: bool = False) -> str | None:
    """Strip a string field and enforce its length cap.

    Blank strings are treated as absent.
    """
    raw = data.get(field)
    if raw is None:
        value = None
    elif isinstance(raw, str):
        value = raw.strip() or None
    else:
        raise ValidationError(f"{field} must be a string", details={field: "not a string"})

    if value is None:
        if required:
            raise ValidationError(f"{field} is required", details={field: "required"})
        return None
    if len(value) > max_length:
        raise ValidationError(
            f"{field} must not exceed {max_length} characters",
            details={field: f"max {max_length} characters"},
        )
    return value


def check_email(value: str | None, field: str = "contact_email") -> str | None:
    """Syntax-check an email address and return its normalized form."""
    if value is None:
        return None
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"{field} must be a valid email address: {e}", details={field: "invalid email"})


def check_phone(value: str | None, field: str = "phone") -> str | None:
    if value is not None and not _PHONE_RE.match(value):
        raise ValidationError(
            f"{field} must be 10-20 digits, spaces, dashes or parentheses",
            details={field: "invalid phone number"},
        )
    return value


def check_choice(value: str | None, choices, field: str) -> str | None:
    if value is not None and value not in choices:
        raise ValidationError(
            f"{field} must be one of: {', '.join(choices)}",
            details={field: f"unknown value {value!r}"},
        )
    return value


def parse_decimal(value, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", details={field: "not a number"})
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", details={field: "not a number"})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", details={field: "not a number"})
    return result


def parse_int(value, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", details={field: "not an integer"})
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", details={field: "not an integer"})
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", details={field: "out of range"})
    if maximum is not None and result > maximum:
        raise ValidationError(
            f"{field} must be at most {maximum}",
            details={field: "out of range"},
        )
    return result


def parse_bool(value, field: str, default: bool = False) -> bool:
    """Accept JSON booleans and the usual form-encoded spellings."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    elif isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValidationError(f"{field} must be a boolean", details={field: "not a boolean"})


def parse_datetime(value, field: str) -> datetime | None:
    """Convert an ISO-format string to an aware UTC datetime.

    Naive inputs are taken to be UTC. A bare date means midnight UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date/time", details={field: "invalid datetime"})
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        raise ValidationError(f"{field} must be an ISO-8601 date/time", details={field: "invalid datetime"})

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_date(value, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(f"{field} must be an ISO-8601 date", details={field: "invalid date"})
