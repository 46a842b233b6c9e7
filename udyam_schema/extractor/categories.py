"""Keyword table classifying fields into semantic categories.

Rows are evaluated in order and the first match wins, so a field whose text
mentions both "aadhaar" and "verification" is an Aadhaar field. New categories
are added by appending rows.
"""
from dataclasses import dataclass

from .models import FieldCategory, NormalizedField


@dataclass(frozen=True)
class CategoryRule:
    """Keyword predicate mapped to a category."""
    category: FieldCategory
    keywords: tuple[str, ...]
    input_types: tuple[str, ...] = ()

    def matches(self, text: str, input_type: str = "") -> bool:
        if input_type and input_type in self.input_types:
            return True
        return any(keyword in text for keyword in self.keywords)


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(FieldCategory.AADHAAR, ("aadhaar", "aadhar")),
    CategoryRule(FieldCategory.PAN, ("pan",)),
    CategoryRule(FieldCategory.OTP, ("otp", "verification")),
    CategoryRule(FieldCategory.MOBILE, ("mobile", "phone")),
    CategoryRule(FieldCategory.EMAIL, ("email",), input_types=("email",)),
    CategoryRule(FieldCategory.PINCODE, ("pincode", "pin code", "pin_code", "postal")),
    CategoryRule(FieldCategory.CITY, ("city",)),
    CategoryRule(FieldCategory.STATE, ("state",)),
    CategoryRule(FieldCategory.ADDRESS, ("address",)),
    CategoryRule(FieldCategory.NAME, ("name",)),
    CategoryRule(
        FieldCategory.ORGANISATION,
        ("organisation", "organization", "enterprise", "business"),
    ),
)


def classify_text(text: str, input_type: str = "") -> FieldCategory:
    """Classify lower-cased field text, falling back to ``general``."""
    for rule in CATEGORY_RULES:
        if rule.matches(text, input_type):
            return rule.category
    return FieldCategory.GENERAL


def classify_field(field: NormalizedField) -> FieldCategory:
    return classify_text(field.search_text, field.input_type)
