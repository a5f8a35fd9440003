from typing import Any

from email_validator import validate_email, EmailNotValidError


def is_string_valid(value: Any, min_length: int, max_length: int) -> bool:
    """True for a str whose length lies in [min_length, max_length]"""
    return isinstance(value, str) and min_length <= len(value) <= max_length


def is_email_valid(value: Any) -> bool:
    if not is_string_valid(value, 3, 320):
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
