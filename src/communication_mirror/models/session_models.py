"""
Conversation session models.

A Session is owned by the SessionStore; callers only ever see copies.
Interactions are immutable once created.
"""

from dataclasses import dataclass, field
from datetime import datetime

from communication_mirror.models.analysis_models import AnalysisBundle


@dataclass(frozen=True)
class Interaction:
    """One completed message + analysis turn."""

    message: str
    analysis: AnalysisBundle
    timestamp: datetime


@dataclass
class Session:
    """
    Bounded, time-ordered interaction history for one conversation.

    Attributes:
        id: Opaque random identifier
        created_at: Creation time (UTC)
        last_accessed_at: Last successful read or write, drives expiry
        interactions: Most recent interactions, oldest first
    """

    id: str
    created_at: datetime
    last_accessed_at: datetime
    interactions: list[Interaction] = field(default_factory=list)

    @property
    def interaction_count(self) -> int:
        return len(self.interactions)

    def is_idle_longer_than(self, ttl_seconds: float, now: datetime) -> bool:
        return (now - self.last_accessed_at).total_seconds() > ttl_seconds
