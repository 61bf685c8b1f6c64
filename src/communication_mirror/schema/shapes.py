"""
Explicit output-shape descriptions.

A shape is declared once as a tree of FieldSpec nodes and rendered to JSON
Schema twice:

- `decode_schema()` is sent to the model runtime as the decode-time
  constraint (Ollama `format` parameter).
- `json_schema()` is what the post-hoc validator checks against. It is the
  decode schema plus keywords a grammar cannot express (`uniqueBy`).

Both come from the same FieldSpec tree, so they cannot drift apart.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Mapping, Optional

from pydantic import TypeAdapter

from communication_mirror.models.enums import AnalysisKind

# Validator-only keywords, stripped from the decode-time schema
VALIDATION_ONLY_KEYWORDS = frozenset({"uniqueBy"})


class FieldType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class FieldSpec:
    """
    One node of a shape description: a kind plus its constraints.

    Object properties are all required and no other keys are allowed.
    """

    type: FieldType
    min_length: Optional[int] = None
    enum: Optional[tuple[str, ...]] = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    items: Optional["FieldSpec"] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_by: Optional[str] = None
    properties: Mapping[str, "FieldSpec"] = field(default_factory=dict)

    def to_json_schema(self, include_validation_keywords: bool = True) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type.value}

        if self.type is FieldType.STRING:
            if self.enum is not None:
                schema["enum"] = list(self.enum)
            if self.min_length is not None:
                schema["minLength"] = self.min_length

        elif self.type is FieldType.INTEGER:
            if self.minimum is not None:
                schema["minimum"] = self.minimum
            if self.maximum is not None:
                schema["maximum"] = self.maximum

        elif self.type is FieldType.ARRAY:
            if self.items is not None:
                schema["items"] = self.items.to_json_schema(include_validation_keywords)
            if self.min_items is not None:
                schema["minItems"] = self.min_items
            if self.max_items is not None:
                schema["maxItems"] = self.max_items
            if self.unique_by is not None:
                schema["uniqueBy"] = self.unique_by

        elif self.type is FieldType.OBJECT:
            schema["properties"] = {
                name: spec.to_json_schema(include_validation_keywords)
                for name, spec in self.properties.items()
            }
            schema["required"] = list(self.properties)
            schema["additionalProperties"] = False

        if not include_validation_keywords:
            for keyword in VALIDATION_ONLY_KEYWORDS:
                schema.pop(keyword, None)

        return schema


def string(min_length: Optional[int] = 1, enum: Optional[list[str]] = None) -> FieldSpec:
    if enum is not None:
        return FieldSpec(FieldType.STRING, enum=tuple(enum))
    return FieldSpec(FieldType.STRING, min_length=min_length)


def integer(minimum: Optional[int] = None, maximum: Optional[int] = None) -> FieldSpec:
    return FieldSpec(FieldType.INTEGER, minimum=minimum, maximum=maximum)


def boolean() -> FieldSpec:
    return FieldSpec(FieldType.BOOLEAN)


def array(
    items: FieldSpec,
    min_items: Optional[int] = None,
    max_items: Optional[int] = None,
    unique_by: Optional[str] = None,
) -> FieldSpec:
    return FieldSpec(
        FieldType.ARRAY,
        items=items,
        min_items=min_items,
        max_items=max_items,
        unique_by=unique_by,
    )


def obj(**properties: FieldSpec) -> FieldSpec:
    return FieldSpec(FieldType.OBJECT, properties=dict(properties))


@dataclass(frozen=True)
class OutputShape:
    """
    Target shape of one analysis kind.

    Attributes:
        kind: Analysis kind this shape belongs to
        root: Root FieldSpec
        result_type: Python type the validated value is converted to
    """

    kind: AnalysisKind
    root: FieldSpec
    result_type: Any

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def expects_array(self) -> bool:
        return self.root.type is FieldType.ARRAY

    @cached_property
    def _adapter(self) -> TypeAdapter:
        return TypeAdapter(self.result_type)

    def json_schema(self) -> dict[str, Any]:
        """Full schema used by the validator."""
        return self.root.to_json_schema(include_validation_keywords=True)

    def decode_schema(self) -> dict[str, Any]:
        """Schema handed to the model runtime as decode constraint."""
        return self.root.to_json_schema(include_validation_keywords=False)

    def build(self, value: Any) -> Any:
        """Convert an already validated value to `result_type`."""
        return self._adapter.validate_python(value)
