"""Unit tests for input canonicalisation and format checks."""

import pytest
from services.khairat_service.services.validation import (
    canonicalize_ic,
    canonicalize_mobile,
    is_valid_email,
    is_valid_mobile,
    normalize_email,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "mobile",
    [
        "0123456789",
        "012-345 6789",
        "01123456789",
        "+60123456789",
        "60123456789",
        "123456789",
        "+60 11-2345 6789",
    ],
)
def test_accepts_malaysian_mobile_formats(mobile):
    assert is_valid_mobile(mobile)


@pytest.mark.unit
@pytest.mark.parametrize(
    "mobile",
    ["", "0312345678", "012345", "+6512345678", "01234567890123", "abc0123456789"],
)
def test_rejects_other_mobile_shapes(mobile):
    assert not is_valid_mobile(mobile)


@pytest.mark.unit
def test_canonical_mobile_is_digits_only():
    assert canonicalize_mobile("+60 12-345 6789") == "60123456789"
    assert canonicalize_mobile("012-345 6789") == "0123456789"


@pytest.mark.unit
def test_canonical_ic_strips_dashes_and_spaces():
    assert canonicalize_ic("800101-12-5555") == "800101125555"
    assert canonicalize_ic(" 800101 12 5555 ") == "800101125555"
    assert canonicalize_ic(None) == ""


@pytest.mark.unit
def test_email_checks():
    assert is_valid_email("ahmad@example.com")
    assert not is_valid_email("ahmad@example")
    assert not is_valid_email("ahmad example@x.com")
    assert normalize_email("  Ahmad@Example.COM ") == "ahmad@example.com"
    assert normalize_email("   ") is None
