"""
Semantic post-processors.

Pure functions applied after schema validation. They repair
logically-valid-but-semantically-wrong output and never raise.
"""

from communication_mirror.postprocessing.alternatives import filter_valid_alternatives
from communication_mirror.postprocessing.impact import category_for, normalize_impact
from communication_mirror.postprocessing.tone import (
    clean_emotion_label,
    derive_sentiment,
    filter_and_clean_tone,
)

__all__ = [
    "category_for",
    "normalize_impact",
    "clean_emotion_label",
    "derive_sentiment",
    "filter_and_clean_tone",
    "filter_valid_alternatives",
]
