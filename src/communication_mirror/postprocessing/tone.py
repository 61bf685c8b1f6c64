"""
Tone filter and emotion label cleaner.

Steps:
1. Drop "Neutral"/neutral filler entries, unless that would leave no emotions
2. Canonicalize each label: schema-leak rejection, truncation recovery,
   qualifier normalization to (mild|moderate|strong), Title Case
3. Re-derive sentiment from the cleaned label; the lexicon wins over the model
"""

import re
from typing import Optional

import structlog

from communication_mirror.models.analysis_models import Emotion, ToneResult
from communication_mirror.models.enums import Sentiment
from communication_mirror.monitoring.metrics import postprocessing_corrections_total
from communication_mirror.postprocessing.policy import (
    FALLBACK_EMOTION_LABEL,
    NEUTRAL_FILLER_LABEL,
    QUALIFIER_MAP,
    SCHEMA_LEAK_PATTERN,
    SENTIMENT_LEXICONS,
    SPECIAL_CASE_LABELS,
    STANDARD_QUALIFIERS,
)
from communication_mirror.validation.truncation import is_truncated

logger = structlog.get_logger(__name__)

_SCHEMA_LEAK_RE = re.compile(SCHEMA_LEAK_PATTERN, re.IGNORECASE)
_TRAILING_BRACKETS_RE = re.compile(r"[{\[\]]+$")
_QUALIFIER_RE = re.compile(r"^(.+?)\s*\(([^)]+)\)\s*$")
_WHITESPACE_RE = re.compile(r"\s+")


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def _title_case(phrase: str) -> str:
    """Title Case each word, including each part of a hyphenated word."""
    return " ".join(
        "-".join(_capitalize(part) for part in word.split("-"))
        for word in phrase.split()
    )


def _normalize_qualifier(main: str, qualifier: str) -> str:
    qualifier = QUALIFIER_MAP.get(qualifier.lower(), qualifier.lower())
    # "Frustrated (frustrated)"
    if len(qualifier) > 2 and qualifier in main.lower():
        return ""
    if qualifier not in STANDARD_QUALIFIERS:
        return ""
    return qualifier


def clean_emotion_label(text: str) -> str:
    """
    Canonical form of an emotion label.

    >>> clean_emotion_label("  task focused (Slightly) ")
    'Task-Focused (mild)'
    >>> clean_emotion_label("Task-Flow (mod 4 5 6 7 {")
    'Emotional Discomfort'
    """
    cleaned = text.strip()
    if not cleaned:
        return text

    if _SCHEMA_LEAK_RE.search(cleaned):
        logger.error("Schema leak in emotion label", label=cleaned)
        return FALLBACK_EMOTION_LABEL

    if is_truncated(cleaned):
        logger.error("Truncated emotion label", label=cleaned)
        cleaned = _TRAILING_BRACKETS_RE.sub("", cleaned).strip()
        if not cleaned:
            return FALLBACK_EMOTION_LABEL

    main, qualifier = cleaned, ""
    match = _QUALIFIER_RE.match(cleaned)
    if match:
        main, qualifier = match.group(1).strip(), match.group(2).strip()

    main = _title_case(main)
    main = SPECIAL_CASE_LABELS.get(main, main)

    if qualifier:
        qualifier = _normalize_qualifier(main, qualifier)

    result = f"{main} ({qualifier})" if qualifier else main
    return _WHITESPACE_RE.sub(" ", result).strip()


def derive_sentiment(label: str) -> Optional[Sentiment]:
    """
    Sentiment implied by the label's wording, or None when no lexicon matches.

    Negative keywords are checked first, then positive, then neutral.
    """
    lowered = label.lower()
    for sentiment, keywords in SENTIMENT_LEXICONS:
        if any(keyword in lowered for keyword in keywords):
            return sentiment
    return None


def _is_neutral_filler(emotion: Emotion) -> bool:
    return (
        emotion.text.lower() == NEUTRAL_FILLER_LABEL
        and emotion.sentiment == Sentiment.NEUTRAL
    )


def _clean_emotion(emotion: Emotion) -> Emotion:
    text = clean_emotion_label(emotion.text)
    if text != emotion.text:
        logger.debug("Cleaned emotion label", original=emotion.text, cleaned=text)
        postprocessing_corrections_total.labels(processor="tone", correction="label").inc()

    sentiment = derive_sentiment(text) or emotion.sentiment
    if sentiment != emotion.sentiment:
        logger.warning(
            "Corrected emotion sentiment",
            label=text,
            was=emotion.sentiment.value,
            corrected=sentiment.value,
        )
        postprocessing_corrections_total.labels(processor="tone", correction="sentiment").inc()

    return Emotion(text=text, sentiment=sentiment)


def filter_and_clean_tone(tone: ToneResult) -> ToneResult:
    """
    Filter filler emotions and canonicalize the rest.

    If every emotion is neutral filler, the tone is returned unchanged:
    fewer-but-real beats empty.

    Args:
        tone: Schema-valid tone result

    Returns:
        New ToneResult; the input is not modified
    """
    kept = [emotion for emotion in tone.emotions if not _is_neutral_filler(emotion)]

    if not kept:
        logger.warning("All emotions were neutral filler, keeping original list")
        return tone

    if len(kept) < len(tone.emotions):
        postprocessing_corrections_total.labels(processor="tone", correction="neutral_filter").inc()

    return tone.model_copy(update={"emotions": [_clean_emotion(emotion) for emotion in kept]})
