"""
Unit tests for SchemaValidator.

Tests field-level error tagging (failure kind + path) and the exact
`path: message` error text fed back to the model on retry.
"""

import copy

import pytest

from communication_mirror.schema.definitions import (
    ALTERNATIVES_SHAPE,
    IMPACT_SHAPE,
    INTENT_SHAPE,
    TONE_SHAPE,
)
from communication_mirror.validation.exceptions import FailureKind, ValidationError
from communication_mirror.validation.schema_validator import SchemaValidator


def kinds_at(report, path):
    return {error.kind for error in report.errors if error.path == path}


# ============================================================================
# Valid payloads
# ============================================================================


class TestValidPayloads:
    def test_intent(self, intent_payload):
        assert SchemaValidator(INTENT_SHAPE).validate(intent_payload).valid

    def test_tone(self, tone_payload):
        assert SchemaValidator(TONE_SHAPE).validate(tone_payload).valid

    def test_impact(self, impact_payload):
        assert SchemaValidator(IMPACT_SHAPE).validate(impact_payload).valid

    def test_alternatives(self, alternatives_payload):
        assert SchemaValidator(ALTERNATIVES_SHAPE).validate(alternatives_payload).valid

    def test_check_passes_silently(self, intent_payload):
        SchemaValidator(INTENT_SHAPE).check(intent_payload)


# ============================================================================
# Failure tagging
# ============================================================================


class TestFailureTagging:
    def test_empty_intent_field(self, intent_payload):
        intent_payload["secondary"] = ""
        report = SchemaValidator(INTENT_SHAPE).validate(intent_payload)

        assert not report.valid
        assert kinds_at(report, ("secondary",)) == {FailureKind.EMPTY_STRING}

    def test_missing_field(self, intent_payload):
        del intent_payload["implicit"]
        report = SchemaValidator(INTENT_SHAPE).validate(intent_payload)

        assert FailureKind.MISSING_FIELD in kinds_at(report, ())

    def test_unexpected_field(self, intent_payload):
        intent_payload["confidence"] = 0.9
        report = SchemaValidator(INTENT_SHAPE).validate(intent_payload)

        assert FailureKind.UNEXPECTED_FIELD in kinds_at(report, ())

    def test_empty_emotions(self, tone_payload):
        tone_payload["emotions"] = []
        report = SchemaValidator(TONE_SHAPE).validate(tone_payload)

        assert kinds_at(report, ("emotions",)) == {FailureKind.TOO_FEW_ITEMS}

    def test_invalid_sentiment(self, tone_payload):
        tone_payload["emotions"][0]["sentiment"] = "mixed"
        report = SchemaValidator(TONE_SHAPE).validate(tone_payload)

        assert kinds_at(report, ("emotions", 0, "sentiment")) == {FailureKind.INVALID_CHOICE}

    def test_too_few_metrics(self, impact_payload):
        impact_payload["metrics"] = impact_payload["metrics"][:3]
        report = SchemaValidator(IMPACT_SHAPE).validate(impact_payload)

        assert kinds_at(report, ("metrics",)) == {FailureKind.TOO_FEW_ITEMS}

    def test_too_many_metrics(self, impact_payload):
        extra = copy.deepcopy(impact_payload["metrics"][0])
        extra["name"] = "Cooperation Likelihood"
        impact_payload["metrics"].append(extra)
        report = SchemaValidator(IMPACT_SHAPE).validate(impact_payload)

        assert FailureKind.TOO_MANY_ITEMS in kinds_at(report, ("metrics",))

    def test_wrong_metric_name(self, impact_payload):
        impact_payload["metrics"][1]["name"] = "Defensiveness"
        report = SchemaValidator(IMPACT_SHAPE).validate(impact_payload)

        assert kinds_at(report, ("metrics", 1, "name")) == {FailureKind.INVALID_CHOICE}

    def test_duplicate_metric_name(self, impact_payload):
        """Four metrics, but one canonical name twice and one missing."""
        impact_payload["metrics"][3]["name"] = "Emotional Friction"
        report = SchemaValidator(IMPACT_SHAPE).validate(impact_payload)

        assert kinds_at(report, ("metrics", 3, "name")) == {FailureKind.DUPLICATE_ITEM}

    def test_value_out_of_range(self, impact_payload):
        impact_payload["metrics"][0]["value"] = 140
        report = SchemaValidator(IMPACT_SHAPE).validate(impact_payload)

        assert kinds_at(report, ("metrics", 0, "value")) == {FailureKind.OUT_OF_RANGE}

    def test_value_wrong_type(self, impact_payload):
        impact_payload["metrics"][0]["value"] = "high"
        report = SchemaValidator(IMPACT_SHAPE).validate(impact_payload)

        assert FailureKind.WRONG_TYPE in kinds_at(report, ("metrics", 0, "value"))

    def test_empty_alternatives_array(self):
        report = SchemaValidator(ALTERNATIVES_SHAPE).validate([])

        assert kinds_at(report, ()) == {FailureKind.TOO_FEW_ITEMS}

    def test_empty_alternative_reason(self, alternatives_payload):
        alternatives_payload[1]["reason"] = ""
        report = SchemaValidator(ALTERNATIVES_SHAPE).validate(alternatives_payload)

        assert kinds_at(report, (1, "reason")) == {FailureKind.EMPTY_STRING}

    def test_is_positive_must_be_boolean(self, alternatives_payload):
        alternatives_payload[0]["tags"][0]["isPositive"] = "yes"
        report = SchemaValidator(ALTERNATIVES_SHAPE).validate(alternatives_payload)

        assert kinds_at(report, (0, "tags", 0, "isPositive")) == {FailureKind.WRONG_TYPE}


# ============================================================================
# check() and error text
# ============================================================================


class TestCheck:
    def test_raises_validation_error(self, intent_payload):
        intent_payload["primary"] = ""

        with pytest.raises(ValidationError) as exc_info:
            SchemaValidator(INTENT_SHAPE).check(intent_payload)

        error = exc_info.value
        assert error.failure_kind is FailureKind.EMPTY_STRING
        assert error.details["shape"] == "intent"

    def test_error_text_is_path_colon_message(self, intent_payload):
        intent_payload["primary"] = ""

        with pytest.raises(ValidationError) as exc_info:
            SchemaValidator(INTENT_SHAPE).check(intent_payload)

        assert str(exc_info.value) == "root.primary: must NOT have fewer than 1 characters"

    def test_multiple_errors_joined(self, tone_payload):
        tone_payload["summary"] = ""
        tone_payload["details"] = ""

        with pytest.raises(ValidationError) as exc_info:
            SchemaValidator(TONE_SHAPE).check(tone_payload)

        message = exc_info.value.message
        assert "root.summary: " in message
        assert "root.details: " in message
        assert "; " in message
        assert len(exc_info.value.field_errors) == 2

    def test_validate_never_raises_on_garbage(self):
        report = SchemaValidator(INTENT_SHAPE).validate("not an object")

        assert not report.valid
        assert report.errors[0].kind is FailureKind.WRONG_TYPE
