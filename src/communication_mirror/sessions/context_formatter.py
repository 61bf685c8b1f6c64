"""
Render a session's retained interactions into a prompt-ready context block.

    Previous conversation context:

    [5m ago] User: "Can you send the report?"
    Intent: Get the report delivered.
    Tone: Polite and task-focused.
    High impact: Relationship Strain
"""

from datetime import datetime
from typing import Optional, Sequence

from communication_mirror.models.enums import ImpactCategory
from communication_mirror.models.session_models import Interaction

CONTEXT_HEADER = "Previous conversation context:"


def format_time_ago(then: datetime, now: datetime) -> str:
    """Relative time label: "just now", "{m}m ago", "{h}h ago" or "{d}d ago"."""
    seconds = (now - then).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"


def format_interaction(interaction: Interaction, now: datetime) -> list[str]:
    analysis = interaction.analysis
    lines = [
        "",
        f'[{format_time_ago(interaction.timestamp, now)}] User: "{interaction.message}"',
        f"Intent: {analysis.intent.primary}",
        f"Tone: {analysis.tone.summary}",
    ]
    high_impact = [
        metric.name.value
        for metric in analysis.impact.metrics
        if metric.category == ImpactCategory.HIGH
    ]
    if high_impact:
        lines.append(f"High impact: {', '.join(high_impact)}")
    return lines


def format_context(interactions: Sequence[Interaction], now: datetime) -> Optional[str]:
    """
    Context block for `interactions` (oldest first).

    Returns:
        The rendered block, or None when there are no interactions
    """
    if not interactions:
        return None

    lines = [CONTEXT_HEADER]
    for interaction in interactions:
        lines.extend(format_interaction(interaction, now))
    return "\n".join(lines)
