"""Form field extraction: normalization, categorization and rule inference."""
from .categories import CATEGORY_RULES, classify_field, classify_text
from .forms import FormSnapshotExtractor
from .models import (
    AttributeHints,
    FieldCategory,
    FieldKind,
    LengthBounds,
    NormalizedField,
    PageSnapshot,
    RawElement,
    RuleType,
    SelectOption,
    UiHints,
    ValidationRule,
)
from .normalizer import FieldNormalizer, clean_identifier, clean_label
from .patterns import PATTERN_LIBRARY, CanonicalPattern, get_pattern
from .rules import FieldResult, ValidationRuleInferencer, length_message

__all__ = [
    "AttributeHints",
    "CATEGORY_RULES",
    "CanonicalPattern",
    "FieldCategory",
    "FieldKind",
    "FieldNormalizer",
    "FieldResult",
    "FormSnapshotExtractor",
    "LengthBounds",
    "NormalizedField",
    "PATTERN_LIBRARY",
    "PageSnapshot",
    "RawElement",
    "RuleType",
    "SelectOption",
    "UiHints",
    "ValidationRule",
    "ValidationRuleInferencer",
    "classify_field",
    "classify_text",
    "clean_identifier",
    "clean_label",
    "get_pattern",
    "length_message",
]
