# tests/test_validation.py
import pytest

from app.tools.scheduler.validation import (
    is_valid_email,
    is_valid_phone_number,
    normalize_phone,
    sanitize_string,
)


@pytest.mark.parametrize(
    "phone, valid",
    [
        ("(555) 123-4567", True),
        ("+1 555 123 4567", True),
        ("5551234", True),  # 7 digits
        ("+44 20 7946 0958", True),
        ("123456", False),  # 6 digits
        ("1234567890123456", False),  # 16 digits
        ("call me maybe", False),
        ("", False),
        (None, False),
    ],
)
def test_phone_numbers(phone, valid):
    assert is_valid_phone_number(phone) is valid


@pytest.mark.parametrize(
    "email, valid",
    [
        ("jane.doe@gmail.com", True),
        ("j+appointments@clinic.co.uk", True),
        ("jane.doe@", False),
        ("jane doe@gmail.com", False),
        ("no-at-sign.com", False),
        ("", False),
    ],
)
def test_emails(email, valid):
    assert is_valid_email(email) is valid


def test_sanitize_truncates_and_strips_nul_bytes():
    assert sanitize_string("Ja\x00ne", 100) == "Jane"
    assert sanitize_string("x" * 150, 100) == "x" * 100
    assert sanitize_string(None) == ""


@pytest.mark.parametrize(
    "phone,digits",
    [
        ("(555) 123-4567", "5551234567"),
        ("555.123.4567", "5551234567"),
        ("+1 555 123 4567", "15551234567"),
        (None, ""),
    ],
)
def test_normalize_phone(phone, digits):
    assert normalize_phone(phone) == digits
