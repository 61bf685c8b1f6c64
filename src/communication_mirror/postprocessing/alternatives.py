"""
Alternatives filter.

Drops alternatives with a blank text, a blank reason, no tags, or any
blank tag text. No minimum is re-enforced: the caller may get fewer
alternatives than were generated, possibly none.
"""

import structlog

from communication_mirror.models.analysis_models import Alternative
from communication_mirror.monitoring.metrics import postprocessing_corrections_total

logger = structlog.get_logger(__name__)


def _is_blank(value: str) -> bool:
    return not value or not value.strip()


def is_complete(alternative: Alternative) -> bool:
    """True when every user-visible field of `alternative` has content."""
    if _is_blank(alternative.text) or _is_blank(alternative.reason):
        return False
    if not alternative.tags:
        return False
    return not any(_is_blank(tag.text) for tag in alternative.tags)


def filter_valid_alternatives(alternatives: list[Alternative]) -> list[Alternative]:
    """
    Keep only complete alternatives, preserving order.

    Never returns more items than it was given.
    """
    kept = [alternative for alternative in alternatives if is_complete(alternative)]

    dropped = len(alternatives) - len(kept)
    if dropped:
        logger.warning(
            "Dropped incomplete alternatives",
            dropped=dropped,
            remaining=len(kept),
        )
        postprocessing_corrections_total.labels(
            processor="alternatives", correction="dropped"
        ).inc(dropped)

    return kept
