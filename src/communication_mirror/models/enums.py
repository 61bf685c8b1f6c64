"""
Enumerations for Communication Mirror data models.

All enums are closed sets - the schema rejects anything outside them.
"""

from enum import Enum


class AnalysisKind(str, Enum):
    """
    The four fixed analysis axes.

    Selects the output shape, the post-processor and the temperature /
    token budget used for one generation.
    """

    INTENT = "intent"
    TONE = "tone"
    IMPACT = "impact"
    ALTERNATIVES = "alternatives"


class Sentiment(str, Enum):
    """Valence of a single emotion label."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ImpactCategory(str, Enum):
    """
    Tier of an impact metric.

    Derived from the numeric value: 0-30 low, 31-60 medium, 61-100 high.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MetricName(str, Enum):
    """Canonical impact metric names. Exactly one of each per result."""

    EMOTIONAL_FRICTION = "Emotional Friction"
    DEFENSIVE_RESPONSE = "Defensive Response Likelihood"
    RELATIONSHIP_STRAIN = "Relationship Strain"
    COOPERATION = "Cooperation Likelihood"
