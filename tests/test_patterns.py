"""Tests for the canonical pattern library."""
import re

import pytest

from udyam_schema.extractor.models import FieldCategory, RuleType
from udyam_schema.extractor.patterns import PATTERN_LIBRARY, get_pattern


@pytest.mark.parametrize(
    "category,valid,invalid",
    [
        (FieldCategory.AADHAAR, "123456789012", "12345678901"),
        (FieldCategory.PAN, "ABCDE1234F", "ABCD1234EF"),
        (FieldCategory.OTP, "482913", "48291"),
        (FieldCategory.MOBILE, "9876543210", "5876543210"),
        (FieldCategory.EMAIL, "owner@example.in", "owner@example"),
        (FieldCategory.PINCODE, "110001", "11001a"),
    ],
)
def test_patterns_match_reference_values(category: FieldCategory, valid: str, invalid: str) -> None:
    pattern = re.compile(PATTERN_LIBRARY[category].pattern)
    assert pattern.search(valid)
    assert not pattern.search(invalid)


def test_pan_accepts_lower_case() -> None:
    assert re.search(PATTERN_LIBRARY[FieldCategory.PAN].pattern, "abcde1234f")


def test_categories_without_pattern() -> None:
    for category in (FieldCategory.CITY, FieldCategory.STATE, FieldCategory.NAME, FieldCategory.GENERAL):
        assert get_pattern(category) is None


def test_to_rule() -> None:
    rule = PATTERN_LIBRARY[FieldCategory.OTP].to_rule()
    assert rule.rule_type == RuleType.PATTERN
    assert rule.value == "^[0-9]{6}$"
    assert rule.message == "OTP must be 6 digits"


def test_library_is_read_only() -> None:
    with pytest.raises(TypeError):
        PATTERN_LIBRARY[FieldCategory.CITY] = PATTERN_LIBRARY[FieldCategory.OTP]  # type: ignore[index]
