import re
from typing import Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

_NON_DIGITS_RE = re.compile(r"\D")
_email_adapter = TypeAdapter(EmailStr)


def is_valid_phone_number(phone: Optional[str]) -> bool:
    """7 to 15 digits once punctuation and spaces are dropped (covers US and E.164)."""
    if not phone:
        return False
    digits = _NON_DIGITS_RE.sub("", phone)
    return 7 <= len(digits) <= 15


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return True


def sanitize_string(value: Optional[str], max_length: int = 1000) -> str:
    """Truncate to max_length and drop NUL bytes (Postgres text rejects them)."""
    if not value:
        return ""
    return value[:max_length].replace("\x00", "").strip()


def normalize_phone(phone: Optional[str]) -> str:
    """Digits only, so '(555) 123-4567' and '555-123-4567' store and match the same."""
    if not phone:
        return ""
    return _NON_DIGITS_RE.sub("", phone)
