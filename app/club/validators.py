"""
Input validation helpers shared by the club operations
"""
import re
from typing import Any, Iterable, Mapping, Optional

from .errors import InvalidEmailError, MissingFieldError, ValidationError
from .models import MemberType

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def is_valid_phone(phone: Optional[str]) -> bool:
    """US format: (XXX) XXX-XXXX"""
    return bool(phone) and PHONE_PATTERN.match(phone) is not None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def require_fields(data: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Raise MissingFieldError for the first absent or empty field"""
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingFieldError(field)


def validate_email(email: Optional[str]) -> str:
    email = (email or "").strip()
    if not is_valid_email(email):
        raise InvalidEmailError()
    return normalize_email(email)


def validate_phone(phone: Optional[str]) -> str:
    if not is_valid_phone(phone):
        raise ValidationError("Invalid phone format. Use format: (XXX) XXX-XXXX")
    return phone


def validate_member_type(value: Any) -> MemberType:
    try:
        return MemberType(value)
    except ValueError:
        allowed = ", ".join(m.value for m in MemberType)
        raise ValidationError(f"Invalid member_type: {value}. Allowed: {allowed}")
