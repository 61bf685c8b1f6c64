"""
Per-kind generation profiles.

A profile binds one AnalysisKind to its output shape, validator,
temperature / token budget and semantic post-processor.
"""

from dataclasses import dataclass
from typing import Any, Callable

from communication_mirror.config import Settings
from communication_mirror.models.enums import AnalysisKind
from communication_mirror.models.llm_models import GenerationOptions
from communication_mirror.postprocessing import (
    filter_and_clean_tone,
    filter_valid_alternatives,
    normalize_impact,
)
from communication_mirror.schema.definitions import get_shape
from communication_mirror.schema.shapes import OutputShape
from communication_mirror.validation.schema_validator import SchemaValidator


def _unchanged(value: Any) -> Any:
    return value


POSTPROCESSORS: dict[AnalysisKind, Callable[[Any], Any]] = {
    AnalysisKind.INTENT: _unchanged,
    AnalysisKind.TONE: filter_and_clean_tone,
    AnalysisKind.IMPACT: normalize_impact,
    AnalysisKind.ALTERNATIVES: filter_valid_alternatives,
}


@dataclass(frozen=True)
class AnalysisProfile:
    kind: AnalysisKind
    shape: OutputShape
    validator: SchemaValidator
    options: GenerationOptions
    postprocess: Callable[[Any], Any]


def build_profiles(settings: Settings) -> dict[AnalysisKind, AnalysisProfile]:
    """
    Build the four profiles from settings.

    Alternatives get their own, larger token budget; the other kinds leave
    max_tokens unset so the lane's context budget applies.
    """
    options = {
        AnalysisKind.INTENT: GenerationOptions(temperature=settings.INTENT_TEMPERATURE),
        AnalysisKind.TONE: GenerationOptions(temperature=settings.TONE_TEMPERATURE),
        AnalysisKind.IMPACT: GenerationOptions(temperature=settings.IMPACT_TEMPERATURE),
        AnalysisKind.ALTERNATIVES: GenerationOptions(
            temperature=settings.ALTERNATIVES_TEMPERATURE,
            max_tokens=settings.ALTERNATIVES_MAX_TOKENS,
        ),
    }

    profiles = {}
    for kind in AnalysisKind:
        shape = get_shape(kind)
        profiles[kind] = AnalysisProfile(
            kind=kind,
            shape=shape,
            validator=SchemaValidator(shape),
            options=options[kind],
            postprocess=POSTPROCESSORS[kind],
        )
    return profiles
