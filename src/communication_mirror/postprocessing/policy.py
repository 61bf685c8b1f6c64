"""
Tunable policy constants for the semantic post-processors.

These are product judgments about how a recipient is likely to react,
not structural invariants. Change them here and nowhere else.
"""

from communication_mirror.models.enums import Sentiment

# === Impact tiers ===
# low: 0..LOW_MAX, medium: LOW_MAX+1..MEDIUM_MAX, high: above MEDIUM_MAX
LOW_MAX = 30
MEDIUM_MAX = 60

# Value given to Friction / Strain when low cooperation shows no tension anywhere
CONSISTENCY_BUMP_VALUE = 35

# Value given to a Cooperation Likelihood of exactly 0
COOPERATION_FLOOR_VALUE = 45

# === Tone ===
FALLBACK_EMOTION_LABEL = "Emotional Discomfort"

NEUTRAL_FILLER_LABEL = "neutral"

SCHEMA_LEAK_PATTERN = r"\(mod\s+\d+|\d+\s+\d+\s+\d+|Task-Flow|schema|enum|internal"

STANDARD_QUALIFIERS = ("mild", "moderate", "strong")

QUALIFIER_MAP = {
    "low intensity": "mild",
    "low-intensity": "mild",
    "slight": "mild",
    "slightly": "mild",
    "mild": "mild",
    "medium intensity": "moderate",
    "medium-intensity": "moderate",
    "moderate intensity": "moderate",
    "moderate": "moderate",
    "high intensity": "strong",
    "high-intensity": "strong",
    "very": "strong",
    "extremely": "strong",
    "strong": "strong",
}

# Applied after title-casing
SPECIAL_CASE_LABELS = {
    "Task Focused": "Task-Focused",
    "Matter Of Fact": "Matter-of-Fact",
    "Matter-Of-Fact": "Matter-of-Fact",
}

# Checked in this order; the first lexicon with a keyword contained in the
# lowercased label decides the sentiment.
SENTIMENT_LEXICONS: tuple[tuple[Sentiment, tuple[str, ...]], ...] = (
    (
        Sentiment.NEGATIVE,
        (
            "frustrated",
            "hurt",
            "disappointed",
            "annoyed",
            "resentful",
            "angry",
            "upset",
            "irritated",
            "disappointment",
            "frustration",
            "resentment",
            "discomfort",
        ),
    ),
    (
        Sentiment.POSITIVE,
        (
            "appreciative",
            "grateful",
            "happy",
            "content",
            "pleased",
            "satisfied",
            "joyful",
            "excited",
        ),
    ),
    (
        Sentiment.NEUTRAL,
        (
            "task-focused",
            "professional",
            "informational",
            "matter-of-fact",
            "neutral",
        ),
    ),
)
