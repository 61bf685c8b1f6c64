"""
Output data models for the four analysis kinds.

These are the typed forms of model output once it has passed the schema
validator and the truncation check. Field names on the wire are camelCase
(`recipientResponse`, `isPositive`); Python attributes are snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field

from communication_mirror.models.enums import ImpactCategory, MetricName, Sentiment


class IntentResult(BaseModel):
    """Communicative intent at three levels of indirection."""

    model_config = ConfigDict(extra="forbid")

    primary: str = Field(..., min_length=1, description="Main goal of the speaker")
    secondary: str = Field(..., min_length=1, description="Supporting goal or subtext")
    implicit: str = Field(..., min_length=1, description="Unstated concern, if supported")


class Emotion(BaseModel):
    """
    One emotion label detected in the message.

    Sentiment must agree with the lexical valence of `text`; the tone
    cleaner enforces this after generation.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, description="Emotion label, e.g. 'Impatient (mild)'")
    sentiment: Sentiment


class ToneResult(BaseModel):
    """Emotional tone of the message."""

    model_config = ConfigDict(extra="forbid")

    summary: str = Field(..., min_length=1)
    emotions: list[Emotion] = Field(..., min_length=1)
    details: str = Field(..., min_length=1, description="Wording that drives the reading")


class ImpactMetric(BaseModel):
    """A single predicted-impact score."""

    model_config = ConfigDict(extra="forbid")

    name: MetricName
    value: int = Field(..., ge=0, le=100)
    category: ImpactCategory


class ImpactResult(BaseModel):
    """
    Predicted recipient impact.

    Exactly four metrics, one per canonical name.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    metrics: list[ImpactMetric] = Field(..., min_length=4, max_length=4)
    recipient_response: str = Field(..., min_length=1, alias="recipientResponse")

    def metric(self, name: MetricName) -> ImpactMetric | None:
        for item in self.metrics:
            if item.name == name:
                return item
        return None


class AlternativeTag(BaseModel):
    """Short qualitative tag attached to an alternative phrasing."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    text: str = Field(..., min_length=1)
    is_positive: bool = Field(..., alias="isPositive")


class Alternative(BaseModel):
    """An alternative phrasing of the original message."""

    model_config = ConfigDict(extra="forbid")

    badge: str = Field(..., min_length=1, description="e.g. 'Option A'")
    text: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, description="Trade-offs of this phrasing")
    tags: list[AlternativeTag] = Field(..., min_length=1)


class AnalysisBundle(BaseModel):
    """All four analyses of one message. Stored as one conversation turn."""

    model_config = ConfigDict(frozen=True)

    intent: IntentResult
    tone: ToneResult
    impact: ImpactResult
    alternatives: list[Alternative]
