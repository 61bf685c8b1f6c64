"""
Data models for Communication Mirror.

- enums: closed vocabularies (AnalysisKind, Sentiment, ImpactCategory, MetricName)
- analysis_models: typed results of the four analyses
- llm_models: decode request/response records
- session_models: Session and Interaction
"""

from communication_mirror.models.analysis_models import (
    Alternative,
    AlternativeTag,
    AnalysisBundle,
    Emotion,
    ImpactMetric,
    ImpactResult,
    IntentResult,
    ToneResult,
)
from communication_mirror.models.enums import (
    AnalysisKind,
    ImpactCategory,
    MetricName,
    Sentiment,
)
from communication_mirror.models.llm_models import (
    GenerationOptions,
    LLMGenerationRequest,
    LLMGenerationResponse,
)
from communication_mirror.models.session_models import Interaction, Session

__all__ = [
    "Alternative",
    "AlternativeTag",
    "AnalysisBundle",
    "AnalysisKind",
    "Emotion",
    "GenerationOptions",
    "ImpactCategory",
    "ImpactMetric",
    "ImpactResult",
    "Interaction",
    "IntentResult",
    "LLMGenerationRequest",
    "LLMGenerationResponse",
    "MetricName",
    "Sentiment",
    "Session",
    "ToneResult",
]
