"""
Output validation for model generations.

- parsing: strict parse + permissive fenced-JSON fallback (ParseError)
- schema_validator: jsonschema validation against an OutputShape (ValidationError)
- truncation: cut-off text detection over string leaves (TruncationError)
"""

from communication_mirror.validation.exceptions import (
    FailureKind,
    FieldError,
    GenerationError,
    ParseError,
    TruncationError,
    ValidationError,
)
from communication_mirror.validation.parsing import parse_output
from communication_mirror.validation.schema_validator import SchemaValidator, ValidationReport
from communication_mirror.validation.truncation import ensure_not_truncated, is_truncated

__all__ = [
    "FailureKind",
    "FieldError",
    "GenerationError",
    "ParseError",
    "SchemaValidator",
    "TruncationError",
    "ValidationError",
    "ValidationReport",
    "ensure_not_truncated",
    "is_truncated",
    "parse_output",
]
