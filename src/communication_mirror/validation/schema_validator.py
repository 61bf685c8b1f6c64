"""
Schema validation of decoded model output.

Validates against the JSON Schema rendered from an OutputShape using a
Draft7Validator extended with `uniqueBy` (array items must differ in the
named property). jsonschema errors are converted to tagged FieldError
records with stable messages, independent of jsonschema's own wording.
"""

from dataclasses import dataclass
from typing import Any, Iterator

import jsonschema
import structlog
from jsonschema import Draft7Validator
from jsonschema.validators import extend

from communication_mirror.monitoring.metrics import generation_failures_total
from communication_mirror.schema.shapes import OutputShape
from communication_mirror.validation.exceptions import (
    FailureKind,
    FieldError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

MAX_REPORTED_ERRORS = 10


def _unique_by(validator, property_name, instance, schema) -> Iterator[jsonschema.ValidationError]:
    if not validator.is_type(instance, "array"):
        return
    seen: set = set()
    for index, item in enumerate(instance):
        if not isinstance(item, dict):
            continue
        key = item.get(property_name)
        if not isinstance(key, (str, int, float, bool)):
            continue
        if key in seen:
            yield jsonschema.ValidationError(
                f"{key!r} appears more than once",
                path=[index, property_name],
            )
        seen.add(key)


ShapeValidator = extend(Draft7Validator, {"uniqueBy": _unique_by})

_KIND_BY_KEYWORD = {
    "minLength": FailureKind.EMPTY_STRING,
    "minItems": FailureKind.TOO_FEW_ITEMS,
    "maxItems": FailureKind.TOO_MANY_ITEMS,
    "enum": FailureKind.INVALID_CHOICE,
    "required": FailureKind.MISSING_FIELD,
    "additionalProperties": FailureKind.UNEXPECTED_FIELD,
    "type": FailureKind.WRONG_TYPE,
    "minimum": FailureKind.OUT_OF_RANGE,
    "maximum": FailureKind.OUT_OF_RANGE,
    "uniqueBy": FailureKind.DUPLICATE_ITEM,
}


def _describe(error: jsonschema.ValidationError, kind: FailureKind) -> str:
    expected = error.validator_value
    if kind is FailureKind.EMPTY_STRING:
        return f"must NOT have fewer than {expected} characters"
    if kind is FailureKind.TOO_FEW_ITEMS:
        return f"must NOT have fewer than {expected} items"
    if kind is FailureKind.TOO_MANY_ITEMS:
        return f"must NOT have more than {expected} items"
    if kind is FailureKind.INVALID_CHOICE:
        return "must be one of: " + ", ".join(repr(v) for v in expected)
    if kind is FailureKind.WRONG_TYPE:
        return f"must be {expected}"
    if kind is FailureKind.OUT_OF_RANGE:
        bound = ">=" if error.validator == "minimum" else "<="
        return f"must be {bound} {expected}"
    return error.message


def to_field_error(error: jsonschema.ValidationError) -> FieldError:
    """Convert one jsonschema error to a tagged FieldError."""
    kind = _KIND_BY_KEYWORD.get(str(error.validator), FailureKind.INVALID)
    return FieldError(
        path=tuple(error.absolute_path),
        kind=kind,
        message=_describe(error, kind),
    )


@dataclass(frozen=True)
class ValidationReport:
    """Pass/fail plus structured field-level errors."""

    errors: tuple[FieldError, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors


class SchemaValidator:
    """
    Validator bound to one output shape.

    `validate()` is pure and never raises on bad input; `check()` raises
    ValidationError for use inside the generation pipeline.
    """

    def __init__(self, shape: OutputShape):
        self.shape = shape
        self.schema = shape.json_schema()
        ShapeValidator.check_schema(self.schema)
        self._validator = ShapeValidator(self.schema)

    def validate(self, value: Any) -> ValidationReport:
        errors = [to_field_error(error) for error in self._validator.iter_errors(value)]
        return ValidationReport(errors=tuple(errors))

    def check(self, value: Any) -> None:
        """
        Raises:
            ValidationError: If value does not conform to the shape
        """
        report = self.validate(value)
        if report.valid:
            logger.debug("Schema validation passed", kind=self.shape.name)
            return

        first = report.errors[0]
        generation_failures_total.labels(
            kind=self.shape.name, error_type=first.kind.value
        ).inc()
        logger.warning(
            "Schema validation failed",
            kind=self.shape.name,
            error_count=len(report.errors),
            errors=[str(e) for e in report.errors[:MAX_REPORTED_ERRORS]],
        )
        raise ValidationError(report.errors[:MAX_REPORTED_ERRORS], shape_name=self.shape.name)

    def __repr__(self) -> str:
        return f"SchemaValidator(shape={self.shape.name})"
