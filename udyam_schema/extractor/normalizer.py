"""Normalization of raw element snapshots into field records."""
import logging
import re
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from ..core.config import ExtractionConfig
from .models import FieldKind, NormalizedField, RawElement, SelectOption

logger = logging.getLogger(__name__)

FIELD_KIND_MAPPING: dict[str, FieldKind] = {
    "text": FieldKind.TEXT,
    "email": FieldKind.TEXT,
    "tel": FieldKind.TEXT,
    "number": FieldKind.TEXT,
    "password": FieldKind.TEXT,
    "textarea": FieldKind.TEXT,
    "select": FieldKind.SELECT,
    "select-one": FieldKind.SELECT,
    "radio": FieldKind.RADIO,
    "checkbox": FieldKind.CHECKBOX,
    "button": FieldKind.BUTTON,
    "submit": FieldKind.BUTTON,
}

# ASP.NET WebForms naming-container prefixes, e.g. ctl00_ContentPlaceHolder1_
_GENERATED_PREFIX = re.compile(r"^(?:ctl\d+_|ContentPlaceHolder\d+_)+", re.IGNORECASE)
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_WHITESPACE = re.compile(r"\s+")
_TRAILING_MARKERS = re.compile(r"[\s*:]+$")

RawInput = Union[RawElement, Mapping[str, Any]]


def clean_identifier(value: Optional[str]) -> str:
    """Clean an element id or name.

    Invalid characters are replaced before the generated prefixes are
    stripped, so that a replacement can never expose a new prefix and
    cleaning stays idempotent.
    """
    if not value:
        return ""
    cleaned = _INVALID_CHARS.sub("_", value)
    cleaned = _GENERATED_PREFIX.sub("", cleaned)
    return cleaned.lower()


def clean_label(label: Optional[str]) -> str:
    """Collapse whitespace and strip trailing required/colon markers."""
    if not label:
        return ""
    collapsed = _WHITESPACE.sub(" ", label).strip()
    return _TRAILING_MARKERS.sub("", collapsed).strip()


def map_field_kind(element_kind: str, tag_kind: str = "") -> FieldKind:
    """Map a raw element type (or tag name) to a field kind."""
    raw_kind = (element_kind or tag_kind or "").lower()
    return FIELD_KIND_MAPPING.get(raw_kind, FieldKind.TEXT)


class FieldNormalizer:
    """Converts raw element snapshots into normalized field records."""

    def __init__(self, config: Optional[ExtractionConfig] = None) -> None:
        """Initialize normalizer.

        Args:
            config: Extraction configuration supplying the deny list and
                submission keywords.
        """
        config = config or ExtractionConfig()
        self._deny_list = [token.lower() for token in config.deny_list]
        self._submit_keywords = [kw.lower() for kw in config.submit_keywords]

    def normalize(self, raw_elements: Sequence[RawInput], step_name: str) -> list[NormalizedField]:
        """Normalize the raw elements of one step.

        Args:
            raw_elements: Elements in page order.
            step_name: Step the elements belong to.

        Returns:
            Fields in input order, filtered and deduplicated, with
            ``field_index`` assigned from 0.
        """
        logger.info(f"Processing {len(raw_elements)} raw elements for {step_name}")

        fields: list[NormalizedField] = []
        seen: set[tuple[str, str, FieldKind]] = set()

        for position, raw in enumerate(raw_elements):
            try:
                field = self._process_element(raw, step_name)
            except (ValidationError, TypeError, ValueError) as e:
                logger.warning(f"Skipping element {position} in {step_name}: {e}")
                continue

            if field is None:
                continue

            key = (field.id, field.name, field.kind)
            if key in seen:
                logger.debug(f"Dropping duplicate field {field.id or field.name} in {step_name}")
                continue
            seen.add(key)
            fields.append(field)

        fields = [
            field.model_copy(update={"field_index": index})
            for index, field in enumerate(fields)
        ]
        logger.info(f"Processed {len(fields)} valid fields for {step_name}")
        return fields

    def should_skip(self, element: RawElement) -> bool:
        """Check whether an element is noise rather than a form field."""
        if element.element_kind.lower() == "hidden":
            return True

        if not element.identifier and not element.name and not element.associated_label:
            return True

        element_text = f"{element.identifier} {element.name} {element.css_classes}".lower()
        return any(token in element_text for token in self._deny_list)

    def is_submission_button(self, label: str) -> bool:
        text = label.lower()
        return any(kw in text for kw in self._submit_keywords)

    def _process_element(self, raw: RawInput, step_name: str) -> Optional[NormalizedField]:
        element = raw if isinstance(raw, RawElement) else RawElement.model_validate(raw)

        if self.should_skip(element):
            return None

        kind = map_field_kind(element.element_kind, element.tag_kind)
        label = clean_label(element.associated_label)
        if not label and kind == FieldKind.BUTTON:
            label = clean_label(element.current_value)

        field_id = clean_identifier(element.identifier)
        field_name = clean_identifier(element.name or element.identifier)
        if not field_id and not field_name:
            return None

        if kind == FieldKind.BUTTON and not self.is_submission_button(label):
            return None

        options = None
        if element.options is not None:
            options = [
                SelectOption(value=option.value, text=option.text.strip())
                for option in element.options
                if option.value != ""
            ]

        return NormalizedField(
            id=field_id,
            name=field_name,
            kind=kind,
            label=label,
            placeholder=element.placeholder,
            required=element.is_required,
            options=options,
            step_name=step_name,
            input_type=(element.element_kind or element.tag_kind).lower(),
            source_id=element.identifier,
            source_name=element.name,
        )
