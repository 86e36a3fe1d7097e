"""
Input canonicalisation and format checks shared by submission, search and import.

Pure functions with no database dependencies.
"""

import re
from typing import Optional

# Optional country code (+60 / 60) or trunk prefix 0, then 1 and 8-9 digits
MOBILE_PATTERN = re.compile(r"^(\+?60|0)?1[0-9]{8,9}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SEPARATORS = re.compile(r"[\s\-]")

MIN_IC_SEARCH_LENGTH = 6


def canonicalize_ic(value) -> str:
    """Strip dashes and whitespace from an IC number."""
    if value is None:
        return ""
    return SEPARATORS.sub("", str(value)).strip()


def strip_phone_separators(value: str) -> str:
    return SEPARATORS.sub("", value or "")


def is_valid_mobile(value: str) -> bool:
    """Check a Malaysian mobile number after separators are removed."""
    return bool(MOBILE_PATTERN.match(strip_phone_separators(value)))


def canonicalize_mobile(value: str) -> str:
    """Digits only: separators and a leading '+' are dropped."""
    return strip_phone_separators(value).lstrip("+")


def normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field, mapping blank to None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
