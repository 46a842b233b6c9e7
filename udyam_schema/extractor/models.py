"""Data models for element snapshots, normalized fields and validation rules."""
import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class FieldKind(str, Enum):
    """Closed set of field kinds a raw control is mapped to."""
    TEXT = "text"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    BUTTON = "button"


class RuleType(str, Enum):
    """Kind of constraint a validation rule expresses."""
    REQUIRED = "required"
    PATTERN = "pattern"
    LENGTH = "length"
    CUSTOM = "custom"


class FieldCategory(str, Enum):
    """Semantic purpose of a field, prefixed by its broad category."""
    AADHAAR = "identity-aadhaar"
    PAN = "identity-pan"
    OTP = "verification-otp"
    MOBILE = "contact-mobile"
    EMAIL = "contact-email"
    PINCODE = "location-pincode"
    CITY = "location-city"
    STATE = "location-state"
    ADDRESS = "personal-address"
    NAME = "personal-name"
    ORGANISATION = "business-organisation"
    GENERAL = "general"

    @property
    def group(self) -> str:
        """Broad category, e.g. ``identity`` for ``identity-aadhaar``."""
        return self.value.split("-", 1)[0]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, populated by either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectOption(CamelModel):
    """A single option of a select control."""

    value: str = ""
    text: str = ""

    @field_validator("value", "text", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class RawElement(CamelModel):
    """One interactive control as reported by the page snapshot."""

    identifier: str = ""
    name: str = ""
    element_kind: str = ""
    tag_kind: str = ""
    css_classes: str = ""
    placeholder: str = ""
    is_required: bool = False
    is_disabled: bool = False
    current_value: str = ""
    associated_label: str = ""
    options: Optional[list[SelectOption]] = None

    @field_validator(
        "identifier",
        "name",
        "element_kind",
        "tag_kind",
        "css_classes",
        "placeholder",
        "current_value",
        "associated_label",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class AttributeHints(CamelModel):
    """Validation attributes read from the live control."""

    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    title: Optional[str] = None

    @field_validator("pattern", "title", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("min_length", "max_length")
    @classmethod
    def _unset_length(cls, v: Optional[int]) -> Optional[int]:
        # The DOM reports -1 (or 0) for an unset length attribute.
        if v is not None and v <= 0:
            return None
        return v


class LengthBounds(CamelModel):
    """Inclusive length bounds of a ``length`` rule."""

    model_config = ConfigDict(frozen=True)

    min: Optional[int] = None
    max: Optional[int] = None


RuleValue = Union[bool, int, str, LengthBounds]


class ValidationRule(CamelModel):
    """A single constraint with its user-facing message."""

    model_config = ConfigDict(frozen=True)

    rule_type: RuleType
    value: RuleValue
    message: str = ""

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key: rule type plus serialized value."""
        if isinstance(self.value, LengthBounds):
            value: Any = self.value.model_dump(exclude_none=True)
        else:
            value = self.value
        return self.rule_type.value, json.dumps(value, sort_keys=True)


class UiHints(CamelModel):
    """Rendering hints for a frontend input."""

    input_mode: str = "text"
    auto_complete: str = "off"
    spell_check: bool = False
    pattern: Optional[str] = None
    placeholder: Optional[str] = None
    max_length: Optional[int] = None
    text_transform: Optional[str] = None


class NormalizedField(CamelModel):
    """Cleaned, categorized and rule-annotated form field."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    kind: FieldKind = FieldKind.TEXT
    label: str = ""
    placeholder: str = ""
    required: bool = False
    options: Optional[list[SelectOption]] = None
    step_name: str = ""
    field_index: int = 0
    field_category: FieldCategory = FieldCategory.GENERAL
    validation_rules: list[ValidationRule] = Field(default_factory=list)
    expected_format: Optional[str] = None
    has_validation: bool = False
    ui_hints: Optional[UiHints] = None

    # Page-side bookkeeping, not part of the schema document.
    input_type: str = Field(default="", exclude=True)
    source_id: str = Field(default="", exclude=True)
    source_name: str = Field(default="", exclude=True)

    @property
    def display_name(self) -> str:
        return self.label or self.name or self.id

    @property
    def search_text(self) -> str:
        """Lower-cased ``id name label`` text scanned for category keywords."""
        return f"{self.id} {self.name} {self.label}".lower()

    def has_rule(self, rule_type: RuleType) -> bool:
        return any(rule.rule_type == rule_type for rule in self.validation_rules)


class PageSnapshot(CamelModel):
    """Per-step element snapshot of a page, with the hints needed for inference.

    Acts as the hint provider for a run: attribute hints are looked up by the
    raw identifier first and by the raw name second.
    """

    url: str = ""
    title: str = ""
    steps: dict[str, list[RawElement]] = Field(default_factory=dict)
    hints: dict[str, AttributeHints] = Field(default_factory=dict)
    scripts: list[str] = Field(default_factory=list)

    def get_attribute_hints(self, identifier: str, name: str) -> Optional[AttributeHints]:
        if identifier and identifier in self.hints:
            return self.hints[identifier]
        if name and name in self.hints:
            return self.hints[name]
        return None

    def get_script_sources(self) -> list[str]:
        return list(self.scripts)
