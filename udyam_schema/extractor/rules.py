"""Validation rule inference for normalized fields.

Rules are gathered from several sources of decreasing authority:

1. the field's required flag,
2. validation attributes read from the live control (``AttributeHints``),
3. the canonical pattern of the field's keyword category,
4. regex literals found in inline scripts mentioning the field, consulted
   only when no attribute hints could be obtained.

A later source never removes a rule added by an earlier one, and a pattern
rule is only added while the field has none.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .categories import classify_field
from .models import (
    AttributeHints,
    FieldCategory,
    FieldKind,
    LengthBounds,
    NormalizedField,
    RuleType,
    ValidationRule,
)
from .patterns import get_pattern

logger = logging.getLogger(__name__)

DEFAULT_PATTERN_MESSAGE = "Invalid format"

# Anchored regex literals such as /^[0-9]{12}$/ or /^[A-Z]{5}$/i
_REGEX_LITERAL = re.compile(r"/\^[^/]+\$/[gimsuy]*")


@dataclass
class FieldResult:
    """Outcome of processing one field.

    ``error`` is set when the field had to fall back to degraded rules; the
    field itself is always usable.
    """
    field: NormalizedField
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def length_message(min_length: Optional[int], max_length: Optional[int]) -> str:
    """Build the user-facing message of a length rule."""
    if min_length and max_length:
        if min_length == max_length:
            return f"Must be exactly {min_length} characters"
        return f"Must be between {min_length} and {max_length} characters"
    if min_length:
        return f"Must be at least {min_length} characters"
    if max_length:
        return f"Must be no more than {max_length} characters"
    return "Invalid length"


def scan_script_patterns(
    script_sources: Iterable[str], identifier: str, name: str
) -> list[str]:
    """Find regex literals in scripts that reference the given control.

    Args:
        script_sources: Inline script texts of the page.
        identifier: Raw element id as it appears in the page.
        name: Raw element name as it appears in the page.

    Returns:
        Pattern bodies (without delimiters or flags) in discovery order.
    """
    patterns: list[str] = []
    for source in script_sources:
        if not source:
            continue
        if not ((identifier and identifier in source) or (name and name in source)):
            continue
        for literal in _REGEX_LITERAL.findall(source):
            body = literal[1:literal.rindex("/")]
            if body not in patterns:
                patterns.append(body)
    return patterns


def dedupe_rules(rules: Iterable[ValidationRule]) -> list[ValidationRule]:
    """Remove rules sharing a (type, value) key, keeping the first."""
    seen: set[tuple[str, str]] = set()
    unique: list[ValidationRule] = []
    for rule in rules:
        if rule.key in seen:
            continue
        seen.add(rule.key)
        unique.append(rule)
    return unique


def required_rule(field: NormalizedField) -> ValidationRule:
    return ValidationRule(
        rule_type=RuleType.REQUIRED,
        value=True,
        message=f"{field.display_name} is required",
    )


class ValidationRuleInferencer:
    """Infers validation rules for fields through a fixed-priority cascade."""

    def infer_rules(
        self,
        field: NormalizedField,
        live_hints: Optional[AttributeHints] = None,
        script_sources: Optional[Sequence[str]] = None,
    ) -> list[ValidationRule]:
        """Infer the deduplicated rule list of a field.

        Args:
            field: Normalized field.
            live_hints: Attribute hints of the live control, or None when they
                could not be obtained.
            script_sources: Inline scripts scanned when ``live_hints`` is None.

        Returns:
            Rules in cascade order.
        """
        return self.annotate(field, live_hints, script_sources).field.validation_rules

    def annotate(
        self,
        field: NormalizedField,
        live_hints: Optional[AttributeHints] = None,
        script_sources: Optional[Sequence[str]] = None,
    ) -> FieldResult:
        """Return a copy of the field carrying its rules and category."""
        try:
            rules, category = self._cascade(field, live_hints, script_sources)
            error = None
        except Exception as e:
            logger.warning(f"Failed to infer validation rules for field {field.id or field.name}: {e}")
            rules = self.fallback_rules(field)
            category = classify_field(field)
            error = str(e) or type(e).__name__

        canonical = get_pattern(category)
        annotated = field.model_copy(
            update={
                "validation_rules": dedupe_rules(rules),
                "field_category": category,
                "expected_format": (
                    canonical.expected_format
                    if canonical and field.kind != FieldKind.BUTTON
                    else None
                ),
            }
        )
        return FieldResult(field=annotated, error=error)

    def fallback_rules(self, field: NormalizedField) -> list[ValidationRule]:
        """Rules rebuilt from the field alone: required plus keyword pattern."""
        rules: list[ValidationRule] = []
        if field.required:
            rules.append(required_rule(field))

        canonical = get_pattern(classify_field(field))
        if canonical and field.kind != FieldKind.BUTTON:
            rules.append(canonical.to_rule())
        return rules

    def minimal_rules(self, field: NormalizedField) -> list[ValidationRule]:
        """Last-resort rules when even the fallback path cannot run."""
        return [required_rule(field)] if field.required else []

    def _cascade(
        self,
        field: NormalizedField,
        live_hints: Optional[AttributeHints],
        script_sources: Optional[Sequence[str]],
    ) -> tuple[list[ValidationRule], FieldCategory]:
        rules: list[ValidationRule] = []

        if field.required:
            rules.append(required_rule(field))

        if live_hints is not None:
            self._add_attribute_rules(rules, live_hints)

        category = classify_field(field)
        canonical = get_pattern(category)
        if canonical and field.kind != FieldKind.BUTTON and not self._has_pattern(rules):
            rules.append(canonical.to_rule())

        if live_hints is None and script_sources and not self._has_pattern(rules):
            discovered = scan_script_patterns(
                script_sources,
                field.source_id or field.id,
                field.source_name or field.name,
            )
            if discovered:
                logger.debug(f"Found script pattern for {field.id or field.name}: {discovered[0]}")
                rules.append(
                    ValidationRule(
                        rule_type=RuleType.PATTERN,
                        value=discovered[0],
                        message=DEFAULT_PATTERN_MESSAGE,
                    )
                )

        return rules, category

    def _add_attribute_rules(self, rules: list[ValidationRule], hints: AttributeHints) -> None:
        if hints.pattern:
            rule = ValidationRule(
                rule_type=RuleType.PATTERN,
                value=hints.pattern,
                message=hints.title or DEFAULT_PATTERN_MESSAGE,
            )
            if all(existing.key != rule.key for existing in rules):
                rules.append(rule)

        if hints.min_length is not None or hints.max_length is not None:
            rules.append(
                ValidationRule(
                    rule_type=RuleType.LENGTH,
                    value=LengthBounds(min=hints.min_length, max=hints.max_length),
                    message=length_message(hints.min_length, hints.max_length),
                )
            )

    @staticmethod
    def _has_pattern(rules: list[ValidationRule]) -> bool:
        return any(rule.rule_type == RuleType.PATTERN for rule in rules)
