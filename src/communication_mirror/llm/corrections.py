"""
Corrective-guidance dispatch for retry prompts.

Maps a GenerationError to at most one CorrectionTopic by looking at the
failure tag and path of each FieldError. When several field errors map to
different topics, the topic declared first in CorrectionTopic wins.
"""

from enum import Enum
from typing import Optional

from communication_mirror.validation.exceptions import (
    FailureKind,
    FieldError,
    GenerationError,
)

INTENT_FIELDS = frozenset({"primary", "secondary", "implicit"})


class CorrectionTopic(str, Enum):
    """Corrective blocks, in dispatch priority order."""

    INTENT_FIELDS = "intent_fields"
    IMPACT_METRICS = "impact_metrics"
    TONE_DETAILS = "tone_details"
    TONE_EMOTIONS = "tone_emotions"
    ALTERNATIVES = "alternatives"
    EMPTY_ARRAY = "empty_array"
    EMPTY_STRING = "empty_string"
    TRUNCATION = "truncation"


_PRIORITY = list(CorrectionTopic)

_METRIC_LIST_KINDS = frozenset(
    {FailureKind.TOO_FEW_ITEMS, FailureKind.TOO_MANY_ITEMS, FailureKind.DUPLICATE_ITEM}
)
_METRIC_NAME_KINDS = frozenset({FailureKind.INVALID_CHOICE, FailureKind.DUPLICATE_ITEM})


def topic_for(error: FieldError) -> Optional[CorrectionTopic]:
    """Corrective topic for a single field error, or None."""
    kind, path, leaf = error.kind, error.path, error.leaf

    if kind is FailureKind.EMPTY_STRING and len(path) == 1 and leaf in INTENT_FIELDS:
        return CorrectionTopic.INTENT_FIELDS

    if path and path[0] == "metrics":
        if len(path) == 1 and kind in _METRIC_LIST_KINDS:
            return CorrectionTopic.IMPACT_METRICS
        if leaf == "name" and kind in _METRIC_NAME_KINDS:
            return CorrectionTopic.IMPACT_METRICS

    if kind is FailureKind.EMPTY_STRING and path == ("details",):
        return CorrectionTopic.TONE_DETAILS

    if kind is FailureKind.TOO_FEW_ITEMS and path == ("emotions",):
        return CorrectionTopic.TONE_EMOTIONS

    # Alternatives is the only shape with an array root
    if kind is FailureKind.EMPTY_STRING and path and isinstance(path[0], int):
        return CorrectionTopic.ALTERNATIVES
    if kind is FailureKind.TOO_FEW_ITEMS and not path:
        return CorrectionTopic.ALTERNATIVES

    if kind is FailureKind.TOO_FEW_ITEMS:
        return CorrectionTopic.EMPTY_ARRAY
    if kind is FailureKind.EMPTY_STRING:
        return CorrectionTopic.EMPTY_STRING
    if kind is FailureKind.TRUNCATED:
        return CorrectionTopic.TRUNCATION

    return None


def select_correction(error: GenerationError) -> Optional[CorrectionTopic]:
    """Highest-priority corrective topic for `error`, or None for a generic retry."""
    topics = {topic for topic in map(topic_for, error.field_errors) if topic is not None}
    if not topics:
        return None
    return min(topics, key=_PRIORITY.index)
