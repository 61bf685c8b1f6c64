"""
Decoding raw model text into a JSON value.

Two parsers, tried in order:

1. Strict: the text must be exactly one JSON document whose top-level type
   matches the shape (object or array). This is the parser that matches the
   decode-time constraint.
2. Permissive fallback: strip a surrounding markdown code fence, then plain
   `json.loads`.

If both fail, ParseError.
"""

import json
import re
from typing import Any

import structlog

from communication_mirror.monitoring.metrics import generation_failures_total
from communication_mirror.schema.shapes import OutputShape
from communication_mirror.validation.exceptions import ParseError

logger = structlog.get_logger(__name__)

_FENCE_OPEN = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_strict(raw_text: str, shape: OutputShape) -> Any:
    """
    Parse exactly as the constrained decoder should have produced it.

    Raises:
        ValueError: Not JSON, or wrong top-level type
    """
    value = json.loads(raw_text)
    expected = list if shape.expects_array else dict
    if not isinstance(value, expected):
        raise ValueError(
            f"Expected top-level {expected.__name__}, got {type(value).__name__}"
        )
    return value


def parse_permissive(raw_text: str) -> Any:
    """
    Parse after trimming markdown code fencing.

    Raises:
        json.JSONDecodeError: Still not JSON
    """
    return json.loads(strip_code_fences(raw_text))


def parse_output(raw_text: str, shape: OutputShape) -> Any:
    """
    Decode raw model text for `shape`.

    Args:
        raw_text: Text returned by the model runtime
        shape: Target output shape

    Returns:
        Decoded JSON value (not yet validated)

    Raises:
        ParseError: Neither parser could decode the text
    """
    if not raw_text or not raw_text.strip():
        generation_failures_total.labels(kind=shape.name, error_type="empty_content").inc()
        raise ParseError(
            "Model response is empty or whitespace-only",
            raw_content=raw_text,
            parse_error="Empty content",
        )

    try:
        return parse_strict(raw_text, shape)
    except ValueError as strict_error:
        logger.debug(
            "Strict parse failed, trying permissive parse",
            kind=shape.name,
            error=str(strict_error),
        )

    try:
        value = parse_permissive(raw_text)
    except json.JSONDecodeError as e:
        generation_failures_total.labels(kind=shape.name, error_type="parse_error").inc()
        raise ParseError(
            f"Failed to parse model response as JSON: {e.msg}",
            raw_content=raw_text,
            parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
        ) from e

    logger.info("Recovered model response with permissive parse", kind=shape.name)
    return value
