"""
Output shape descriptions shared by decode-time constraints and validation.
"""

from communication_mirror.schema.definitions import (
    ALTERNATIVES_SHAPE,
    IMPACT_SHAPE,
    INTENT_SHAPE,
    SHAPES,
    TONE_SHAPE,
    get_shape,
)
from communication_mirror.schema.shapes import FieldSpec, FieldType, OutputShape

__all__ = [
    "ALTERNATIVES_SHAPE",
    "FieldSpec",
    "FieldType",
    "IMPACT_SHAPE",
    "INTENT_SHAPE",
    "OutputShape",
    "SHAPES",
    "TONE_SHAPE",
    "get_shape",
]
