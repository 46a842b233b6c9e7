"""Tests for ValidationRuleInferencer - cascade, dedup and fallback."""
from typing import Any
from unittest.mock import patch

import pytest

from udyam_schema.extractor.categories import classify_text
from udyam_schema.extractor.models import (
    AttributeHints,
    FieldCategory,
    FieldKind,
    LengthBounds,
    NormalizedField,
    RuleType,
    ValidationRule,
)
from udyam_schema.extractor.patterns import PATTERN_LIBRARY
from udyam_schema.extractor.rules import (
    ValidationRuleInferencer,
    dedupe_rules,
    length_message,
    scan_script_patterns,
)


@pytest.fixture
def inferencer() -> ValidationRuleInferencer:
    return ValidationRuleInferencer()


def make_field(**overrides: Any) -> NormalizedField:
    data: dict[str, Any] = {
        "id": "txtfield",
        "name": "field",
        "kind": FieldKind.TEXT,
        "label": "Field",
        "required": False,
        "step_name": "step1",
    }
    data.update(overrides)
    return NormalizedField(**data)


def pattern_rules(rules: list[ValidationRule]) -> list[ValidationRule]:
    return [r for r in rules if r.rule_type == RuleType.PATTERN]


class TestRequiredRule:
    def test_required_field_gets_rule(self, inferencer: ValidationRuleInferencer) -> None:
        rules = inferencer.infer_rules(make_field(required=True, label="Applicant Name"))
        required = [r for r in rules if r.rule_type == RuleType.REQUIRED]
        assert required == [
            ValidationRule(
                rule_type=RuleType.REQUIRED, value=True, message="Applicant Name is required"
            )
        ]

    def test_optional_field_has_no_required_rule(self, inferencer: ValidationRuleInferencer) -> None:
        rules = inferencer.infer_rules(make_field(required=False))
        assert all(r.rule_type != RuleType.REQUIRED for r in rules)

    def test_message_falls_back_to_name(self, inferencer: ValidationRuleInferencer) -> None:
        rules = inferencer.infer_rules(make_field(required=True, label="", name="txtcity"))
        assert rules[0].message == "txtcity is required"


class TestAttributeRules:
    def test_hint_pattern_used_verbatim(self, inferencer: ValidationRuleInferencer) -> None:
        hints = AttributeHints(pattern="^[A-Z]{3}$", title="Three capitals")
        rules = inferencer.infer_rules(make_field(), hints)
        assert pattern_rules(rules) == [
            ValidationRule(rule_type=RuleType.PATTERN, value="^[A-Z]{3}$", message="Three capitals")
        ]

    def test_length_rule_from_bounds(self, inferencer: ValidationRuleInferencer) -> None:
        rules = inferencer.infer_rules(make_field(), AttributeHints(min_length=2, max_length=50))
        length = [r for r in rules if r.rule_type == RuleType.LENGTH]
        assert len(length) == 1
        assert length[0].value == LengthBounds(min=2, max=50)
        assert length[0].message == "Must be between 2 and 50 characters"

    def test_unset_dom_lengths_ignored(self, inferencer: ValidationRuleInferencer) -> None:
        rules = inferencer.infer_rules(
            make_field(), AttributeHints.model_validate({"minLength": -1, "maxLength": 0})
        )
        assert all(r.rule_type != RuleType.LENGTH for r in rules)

    @pytest.mark.parametrize(
        "min_length,max_length,expected",
        [
            (12, 12, "Must be exactly 12 characters"),
            (2, 10, "Must be between 2 and 10 characters"),
            (3, None, "Must be at least 3 characters"),
            (None, 6, "Must be no more than 6 characters"),
            (None, None, "Invalid length"),
        ],
    )
    def test_length_message(self, min_length: int, max_length: int, expected: str) -> None:
        assert length_message(min_length, max_length) == expected


class TestCategoryRules:
    def test_aadhaar_scenario(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(
            id="txtaadhaarnumber",
            name="aadhaarnumber",
            label="Aadhaar Number",
            required=True,
        )
        result = inferencer.annotate(field)
        assert result.ok
        assert result.field.field_category == FieldCategory.AADHAAR
        assert result.field.validation_rules == [
            ValidationRule(rule_type=RuleType.REQUIRED, value=True, message="Aadhaar Number is required"),
            ValidationRule(
                rule_type=RuleType.PATTERN,
                value="^[0-9]{12}$",
                message="Aadhaar number must be 12 digits",
            ),
        ]

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Aadhaar Number", "12-digit number"),
            ("PAN", "ABCDE1234F"),
            ("OTP", "6-digit number"),
            ("Mobile Number", "10-digit number"),
            ("City", None),
        ],
    )
    def test_expected_format(
        self, inferencer: ValidationRuleInferencer, label: str, expected: str
    ) -> None:
        result = inferencer.annotate(make_field(id="txtvalue", name="value", label=label))
        assert result.field.expected_format == expected

    def test_pincode_hint_not_duplicated(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtpincode", name="pincode", label="PIN Code")
        result = inferencer.annotate(field, AttributeHints(pattern="^[0-9]{6}$"))
        assert result.field.field_category == FieldCategory.PINCODE
        assert len(pattern_rules(result.field.validation_rules)) == 1

    def test_hint_pattern_wins_over_category(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtmobile", label="Mobile Number")
        rules = inferencer.infer_rules(field, AttributeHints(pattern="^[0-9]{10}$"))
        assert [r.value for r in pattern_rules(rules)] == ["^[0-9]{10}$"]

    def test_email_typed_input(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtcontact", label="Contact", input_type="email")
        result = inferencer.annotate(field)
        assert result.field.field_category == FieldCategory.EMAIL
        assert pattern_rules(result.field.validation_rules)[0].value == (
            PATTERN_LIBRARY[FieldCategory.EMAIL].pattern
        )

    def test_category_without_pattern(self, inferencer: ValidationRuleInferencer) -> None:
        result = inferencer.annotate(make_field(id="txtcity", label="City"))
        assert result.field.field_category == FieldCategory.CITY
        assert pattern_rules(result.field.validation_rules) == []

    def test_button_gets_category_but_no_pattern(self, inferencer: ValidationRuleInferencer) -> None:
        button = make_field(id="btnvalidate", kind=FieldKind.BUTTON, label="Validate & Generate OTP")
        result = inferencer.annotate(button)
        assert result.field.field_category == FieldCategory.OTP
        assert result.field.validation_rules == []
        assert result.field.expected_format is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("txtaadhar aadhar", FieldCategory.AADHAAR),
            ("aadhaar verification", FieldCategory.AADHAAR),
            ("txtpan pan number", FieldCategory.PAN),
            ("txtotp otp", FieldCategory.OTP),
            ("phone number", FieldCategory.MOBILE),
            ("email id", FieldCategory.EMAIL),
            ("postal code", FieldCategory.PINCODE),
            ("pin code", FieldCategory.PINCODE),
            ("district city", FieldCategory.CITY),
            ("ddlstate state", FieldCategory.STATE),
            ("official address", FieldCategory.ADDRESS),
            ("full name", FieldCategory.NAME),
            ("type of organisation", FieldCategory.ORGANISATION),
            ("declaration", FieldCategory.GENERAL),
        ],
    )
    def test_classification_order(self, text: str, expected: FieldCategory) -> None:
        assert classify_text(text) == expected


class TestScriptScan:
    SCRIPT = """
        function validateAadhaar() {
            var v = document.getElementById('ctl00_txtRegNo').value;
            if (!/^[0-9]{8}$/.test(v)) { return false; }
        }
    """

    def test_scan_finds_literal_for_referenced_control(self) -> None:
        assert scan_script_patterns([self.SCRIPT], "ctl00_txtRegNo", "") == ["^[0-9]{8}$"]

    def test_scan_ignores_unrelated_scripts(self) -> None:
        assert scan_script_patterns([self.SCRIPT], "txtOther", "other") == []

    def test_scan_strips_flags(self) -> None:
        script = "check('txtCode', /^[a-z]{4}$/gi);"
        assert scan_script_patterns([script], "txtCode", "") == ["^[a-z]{4}$"]

    def test_scan_used_when_hints_unavailable(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtregno", source_id="ctl00_txtRegNo", label="Registration")
        rules = inferencer.infer_rules(field, None, [self.SCRIPT])
        assert pattern_rules(rules) == [
            ValidationRule(rule_type=RuleType.PATTERN, value="^[0-9]{8}$", message="Invalid format")
        ]

    def test_scan_skipped_when_hints_present(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtregno", source_id="ctl00_txtRegNo", label="Registration")
        rules = inferencer.infer_rules(field, AttributeHints(max_length=8), [self.SCRIPT])
        assert pattern_rules(rules) == []

    def test_scan_does_not_add_second_pattern(self, inferencer: ValidationRuleInferencer) -> None:
        script = "if (!/^[0-9]{4}$/.test(ctl00_txtOtp.value)) {}"
        field = make_field(id="txtotp", source_id="ctl00_txtOtp", label="OTP")
        rules = inferencer.infer_rules(field, None, [script])
        assert [r.value for r in pattern_rules(rules)] == ["^[0-9]{6}$"]


class TestFailureFallback:
    def test_cascade_failure_falls_back(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtmobile", label="Mobile Number", required=True)
        with patch.object(
            ValidationRuleInferencer, "_add_attribute_rules", side_effect=RuntimeError("boom")
        ):
            result = inferencer.annotate(field, AttributeHints(pattern="^x$"))

        assert not result.ok
        assert result.error == "boom"
        assert result.field.field_category == FieldCategory.MOBILE
        assert [r.rule_type for r in result.field.validation_rules] == [
            RuleType.REQUIRED,
            RuleType.PATTERN,
        ]
        assert result.field.validation_rules[1].value == "^[6-9][0-9]{9}$"

    def test_fallback_rules_match_heuristic_path(self, inferencer: ValidationRuleInferencer) -> None:
        field = make_field(id="txtpan", label="PAN", required=True)
        assert inferencer.fallback_rules(field) == inferencer.infer_rules(field)

    def test_minimal_rules(self, inferencer: ValidationRuleInferencer) -> None:
        assert inferencer.minimal_rules(make_field(required=False)) == []
        assert len(inferencer.minimal_rules(make_field(required=True))) == 1


class TestDeduplication:
    def test_dedupe_by_type_and_value(self) -> None:
        a = ValidationRule(rule_type=RuleType.PATTERN, value="^x$", message="first")
        b = ValidationRule(rule_type=RuleType.PATTERN, value="^x$", message="second")
        c = ValidationRule(rule_type=RuleType.LENGTH, value=LengthBounds(max=5), message="len")
        d = ValidationRule(rule_type=RuleType.LENGTH, value=LengthBounds(max=5), message="len2")
        assert dedupe_rules([a, b, c, d]) == [a, c]

    @pytest.mark.parametrize(
        "label,hints",
        [
            ("Aadhaar Number", AttributeHints(pattern="^[0-9]{12}$", max_length=12)),
            ("PIN Code", AttributeHints(pattern="^[0-9]{6}$")),
            ("Mobile", None),
            ("Email", AttributeHints(min_length=5)),
        ],
    )
    def test_no_duplicate_keys_and_required_invariant(
        self, inferencer: ValidationRuleInferencer, label: str, hints: AttributeHints
    ) -> None:
        for required in (True, False):
            rules = inferencer.infer_rules(make_field(label=label, required=required), hints)
            keys = [r.key for r in rules]
            assert len(keys) == len(set(keys))
            has_required = any(r.rule_type == RuleType.REQUIRED for r in rules)
            assert has_required is required
