"""Synthesis of per-step fields into a versioned schema document."""
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence

from ..core.config import SchemaConfig
from ..extractor.categories import classify_field
from ..extractor.models import FieldCategory, FieldKind, NormalizedField, RuleType, UiHints
from ..extractor.patterns import PATTERN_LIBRARY, get_pattern
from .models import (
    CanonicalRule,
    FormSchema,
    RuleStatistics,
    SchemaMetadata,
    SchemaStatistics,
    StepDescription,
)

logger = logging.getLogger(__name__)

CATEGORY_GROUPS: tuple[str, ...] = (
    "identity",
    "contact",
    "location",
    "verification",
    "personal",
    "business",
    "general",
)

NUMERIC_CATEGORIES = frozenset({
    FieldCategory.AADHAAR,
    FieldCategory.OTP,
    FieldCategory.MOBILE,
    FieldCategory.PINCODE,
})

CATEGORY_UI_HINTS: dict[FieldCategory, dict[str, Any]] = {
    FieldCategory.AADHAAR: {"placeholder": "Enter 12-digit Aadhaar number", "max_length": 12},
    FieldCategory.PAN: {
        "placeholder": "Enter PAN (e.g., ABCDE1234F)",
        "max_length": 10,
        "text_transform": "uppercase",
    },
    FieldCategory.OTP: {"placeholder": "Enter 6-digit OTP", "max_length": 6},
}


class SchemaStructureError(ValueError):
    """Raised when the step map handed to the synthesizer is malformed."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_ui_hints(category: FieldCategory) -> UiHints:
    """Derive rendering hints from a field category."""
    hints: dict[str, Any] = {}

    if category in NUMERIC_CATEGORIES:
        hints.update(input_mode="numeric", pattern="[0-9]*")
    elif category == FieldCategory.EMAIL:
        hints.update(input_mode="email", auto_complete="email")
    elif category == FieldCategory.NAME:
        hints.update(auto_complete="name", spell_check=True)

    hints.update(CATEGORY_UI_HINTS.get(category, {}))
    return UiHints(**hints)


def category_group(category: FieldCategory) -> str:
    group = category.group
    return group if group in CATEGORY_GROUPS else "general"


class SchemaSynthesizer:
    """Aggregates normalized, rule-annotated fields into a FormSchema."""

    def __init__(
        self,
        config: Optional[SchemaConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize synthesizer.

        Args:
            config: Version, source and step descriptions to stamp.
            clock: Callable returning the generation time. Defaults to UTC now.
        """
        self._config = config or SchemaConfig()
        self._clock = clock or _utc_now

    @property
    def step_names(self) -> list[str]:
        return list(self._config.steps)

    def synthesize(self, step_fields: Mapping[str, Sequence[NormalizedField]]) -> FormSchema:
        """Build the schema document.

        Args:
            step_fields: Fields per step name. Every configured step must be
                present and no other step is accepted.

        Returns:
            Complete FormSchema.

        Raises:
            SchemaStructureError: If the step map is malformed.
        """
        logger.info("Generating form schema...")
        self._validate_structure(step_fields)

        steps = {
            step_name: self._process_step(step_name, step_fields[step_name])
            for step_name in self.step_names
        }
        generated_at = self._clock()

        schema = FormSchema(
            version=self._config.version,
            generated_at=generated_at,
            source_identifier=self._config.source_url,
            metadata=self._build_metadata(steps, generated_at),
            steps=steps,
            global_validation_rules=self._global_rules(),
            field_categories=self._categorize(steps),
            statistics=self._build_statistics(steps),
        )

        logger.info(
            f"Form schema generated: {schema.statistics.total_fields} fields "
            f"across {schema.statistics.total_steps} steps"
        )
        return schema

    def validate_step_map(self, step_map: Mapping[str, Sequence[Any]]) -> None:
        """Check the shape of a step map before any of it is processed.

        The map must hold exactly the configured steps, each bound to a
        sequence of entries.

        Raises:
            SchemaStructureError: If the step map is malformed.
        """
        if not isinstance(step_map, Mapping):
            raise SchemaStructureError(
                f"Expected a mapping of step name to fields, got {type(step_map).__name__}"
            )

        unknown = [name for name in step_map if name not in self._config.steps]
        if unknown:
            raise SchemaStructureError(f"Unrecognized step(s): {', '.join(map(str, unknown))}")

        missing = [name for name in self.step_names if name not in step_map]
        if missing:
            raise SchemaStructureError(f"Missing step(s): {', '.join(missing)}")

        for step_name, entries in step_map.items():
            if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
                raise SchemaStructureError(
                    f"Fields for {step_name} must be a sequence, got {type(entries).__name__}"
                )

    def _validate_structure(self, step_fields: Mapping[str, Sequence[NormalizedField]]) -> None:
        self.validate_step_map(step_fields)
        for step_name, fields in step_fields.items():
            for index, field in enumerate(fields):
                if not isinstance(field, NormalizedField):
                    raise SchemaStructureError(
                        f"{step_name}[{index}] is {type(field).__name__}, not a NormalizedField"
                    )

    def _process_step(self, step_name: str, fields: Sequence[NormalizedField]) -> list[NormalizedField]:
        """Stamp step position, category and UI hints onto each field.

        A field still marked ``general`` is classified here. When that gives
        it a category with a canonical pattern and the field has no pattern
        rule yet, the canonical rule is appended, as in the inferencer's
        fallback path. Buttons never receive a pattern.
        """
        processed = []
        for index, field in enumerate(fields):
            category = field.field_category
            if category == FieldCategory.GENERAL:
                category = classify_field(field)
            canonical = get_pattern(category) if field.kind != FieldKind.BUTTON else None

            rules = list(field.validation_rules)
            reclassified = category != field.field_category
            if reclassified and canonical and not field.has_rule(RuleType.PATTERN):
                rules.append(canonical.to_rule())

            processed.append(
                field.model_copy(
                    update={
                        "step_name": step_name,
                        "field_index": index,
                        "field_category": category,
                        "validation_rules": rules,
                        "expected_format": field.expected_format
                        or (canonical.expected_format if canonical else None),
                        "has_validation": bool(rules),
                        "ui_hints": build_ui_hints(category),
                    }
                )
            )
        return processed

    def _build_metadata(
        self, steps: dict[str, list[NormalizedField]], generated_at: datetime
    ) -> SchemaMetadata:
        descriptions = {
            step_name: StepDescription(
                name=step.name,
                description=step.description,
                field_count=len(steps[step_name]),
            )
            for step_name, step in self._config.steps.items()
        }
        return SchemaMetadata(
            total_steps=len(steps),
            total_fields=sum(len(fields) for fields in steps.values()),
            scraping_method=self._config.scraping_method,
            last_updated=generated_at,
            description=self._config.description,
            steps=descriptions,
        )

    def _global_rules(self) -> dict[str, CanonicalRule]:
        return {
            category.value: CanonicalRule(
                pattern=entry.pattern,
                message=entry.message,
                description=entry.description,
            )
            for category, entry in PATTERN_LIBRARY.items()
        }

    def _categorize(self, steps: dict[str, list[NormalizedField]]) -> dict[str, list[NormalizedField]]:
        buckets: dict[str, list[NormalizedField]] = {group: [] for group in CATEGORY_GROUPS}
        for fields in steps.values():
            for field in fields:
                buckets[category_group(field.field_category)].append(field)
        return buckets

    def _build_statistics(self, steps: dict[str, list[NormalizedField]]) -> SchemaStatistics:
        by_kind: Counter[str] = Counter()
        by_category: Counter[str] = Counter()
        by_rule: Counter[str] = Counter()

        for fields in steps.values():
            for field in fields:
                by_kind[field.kind.value] += 1
                by_category[field.field_category.value] += 1
                for rule in field.validation_rules:
                    by_rule[rule.rule_type.value] += 1

        return SchemaStatistics(
            total_steps=len(steps),
            total_fields=sum(len(fields) for fields in steps.values()),
            fields_by_kind=dict(by_kind),
            fields_by_category=dict(by_category),
            validation_rules=RuleStatistics(total=sum(by_rule.values()), by_type=dict(by_rule)),
        )
