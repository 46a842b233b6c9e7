"""Canonical validation patterns per semantic field category."""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from .models import FieldCategory, RuleType, ValidationRule


@dataclass(frozen=True)
class CanonicalPattern:
    """Reference regular expression and messages for one category."""
    category: FieldCategory
    pattern: str
    message: str
    description: str
    expected_format: Optional[str] = None

    def to_rule(self) -> ValidationRule:
        return ValidationRule(rule_type=RuleType.PATTERN, value=self.pattern, message=self.message)


_PATTERNS = (
    CanonicalPattern(
        category=FieldCategory.AADHAAR,
        pattern="^[0-9]{12}$",
        message="Aadhaar number must be 12 digits",
        description="Indian Aadhaar number validation",
        expected_format="12-digit number",
    ),
    CanonicalPattern(
        category=FieldCategory.PAN,
        pattern="[A-Za-z]{5}[0-9]{4}[A-Za-z]{1}",
        message="PAN must be in format: 5 letters, 4 digits, 1 letter",
        description="Indian PAN card validation",
        expected_format="ABCDE1234F",
    ),
    CanonicalPattern(
        category=FieldCategory.OTP,
        pattern="^[0-9]{6}$",
        message="OTP must be 6 digits",
        description="One-time password validation",
        expected_format="6-digit number",
    ),
    CanonicalPattern(
        category=FieldCategory.MOBILE,
        pattern="^[6-9][0-9]{9}$",
        message="Mobile number must be 10 digits starting with 6-9",
        description="Indian mobile number validation",
        expected_format="10-digit number",
    ),
    CanonicalPattern(
        category=FieldCategory.EMAIL,
        pattern="^[^\\s@]+@[^\\s@]+\\.[^\\s@]+$",
        message="Please enter a valid email address",
        description="Email address validation",
    ),
    CanonicalPattern(
        category=FieldCategory.PINCODE,
        pattern="^[0-9]{6}$",
        message="PIN code must be 6 digits",
        description="Indian postal PIN code validation",
        expected_format="6-digit number",
    ),
)

# Read-only, safe to share between worker threads.
PATTERN_LIBRARY: Mapping[FieldCategory, CanonicalPattern] = MappingProxyType(
    {entry.category: entry for entry in _PATTERNS}
)


def get_pattern(category: FieldCategory) -> Optional[CanonicalPattern]:
    """Return the canonical pattern for a category, if it has one."""
    return PATTERN_LIBRARY.get(category)
