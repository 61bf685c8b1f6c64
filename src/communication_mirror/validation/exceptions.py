"""
Generation failure taxonomy.

Every recoverable pipeline failure is a GenerationError carrying structured
FieldError records, so the retry prompt builder can dispatch on failure kind
and field path instead of matching message text.

Recovered once by the retry engine:
- ParseError: output not decodable as the target shape
- ValidationError: decodable but schema-invalid
- TruncationError: schema-valid but a string leaf looks cut off
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Union

PathPart = Union[str, int]


class FailureKind(str, Enum):
    """Closed set of field-level failure tags."""

    EMPTY_STRING = "empty_string"
    TOO_FEW_ITEMS = "too_few_items"
    TOO_MANY_ITEMS = "too_many_items"
    INVALID_CHOICE = "invalid_choice"
    MISSING_FIELD = "missing_field"
    UNEXPECTED_FIELD = "unexpected_field"
    WRONG_TYPE = "wrong_type"
    OUT_OF_RANGE = "out_of_range"
    DUPLICATE_ITEM = "duplicate_item"
    TRUNCATED = "truncated"
    UNPARSEABLE = "unparseable"
    INVALID = "invalid"


def format_path(path: Sequence[PathPart]) -> str:
    """
    Render a value path as `root.key[0].other`.

    >>> format_path(("metrics", 0, "name"))
    'root.metrics[0].name'
    """
    rendered = "root"
    for part in path:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}"
    return rendered


@dataclass(frozen=True)
class FieldError:
    """One field-level problem: where, what kind, and the readable message."""

    path: tuple[PathPart, ...]
    kind: FailureKind
    message: str

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)

    @property
    def leaf(self) -> PathPart | None:
        """Last path component (the offending field name or index)."""
        return self.path[-1] if self.path else None

    def __str__(self) -> str:
        return f"{self.dotted_path}: {self.message}"


class GenerationError(Exception):
    """
    Base exception for all recoverable generation failures.

    Attributes:
        message: Exact error text (fed back to the model on retry)
        details: Structured data for logs/metrics
        field_errors: Field-level records used for retry dispatch
    """

    failure_kind: FailureKind = FailureKind.INVALID

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        field_errors: Sequence[FieldError] = (),
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.field_errors: tuple[FieldError, ...] = tuple(field_errors)

    def __str__(self) -> str:
        return self.message


class ParseError(GenerationError):
    """
    Model output could not be decoded, not even by the permissive fallback.
    """

    failure_kind = FailureKind.UNPARSEABLE

    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        details: dict[str, Any] = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error
        super().__init__(message, details)


class ValidationError(GenerationError):
    """
    Decoded value does not conform to the output shape.

    The message is the `path: message` list joined with "; ".
    """

    def __init__(self, field_errors: Sequence[FieldError], shape_name: str | None = None):
        field_errors = tuple(field_errors)
        message = "; ".join(str(error) for error in field_errors) or "Schema validation failed"
        details: dict[str, Any] = {
            "validation_errors": [str(error) for error in field_errors[:10]],
        }
        if shape_name:
            details["shape"] = shape_name
        super().__init__(message, details, field_errors)
        if field_errors:
            self.failure_kind = field_errors[0].kind


class TruncationError(GenerationError):
    """A string leaf in an otherwise valid value appears cut off."""

    failure_kind = FailureKind.TRUNCATED

    def __init__(self, path: Sequence[PathPart], fragment: str):
        field_error = FieldError(
            path=tuple(path),
            kind=FailureKind.TRUNCATED,
            message=f'appears truncated: "{fragment[:50]}..."',
        )
        message = f'Truncated text detected at {field_error.dotted_path}: "{fragment[:50]}..."'
        super().__init__(
            message,
            {"path": field_error.dotted_path, "fragment": fragment[:50]},
            (field_error,),
        )
