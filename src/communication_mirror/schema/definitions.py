"""The four analysis shapes."""

from communication_mirror.models.analysis_models import (
    Alternative,
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
from communication_mirror.schema.shapes import (
    OutputShape,
    array,
    boolean,
    integer,
    obj,
    string,
)

INTENT_SHAPE = OutputShape(
    kind=AnalysisKind.INTENT,
    root=obj(
        primary=string(),
        secondary=string(),
        implicit=string(),
    ),
    result_type=IntentResult,
)

TONE_SHAPE = OutputShape(
    kind=AnalysisKind.TONE,
    root=obj(
        summary=string(),
        emotions=array(
            obj(
                text=string(),
                sentiment=string(enum=[s.value for s in Sentiment]),
            ),
            min_items=1,
        ),
        details=string(),
    ),
    result_type=ToneResult,
)

IMPACT_SHAPE = OutputShape(
    kind=AnalysisKind.IMPACT,
    root=obj(
        metrics=array(
            obj(
                name=string(enum=[m.value for m in MetricName]),
                value=integer(minimum=0, maximum=100),
                category=string(enum=[c.value for c in ImpactCategory]),
            ),
            min_items=4,
            max_items=4,
            unique_by="name",
        ),
        recipientResponse=string(),
    ),
    result_type=ImpactResult,
)

ALTERNATIVES_SHAPE = OutputShape(
    kind=AnalysisKind.ALTERNATIVES,
    root=array(
        obj(
            badge=string(),
            text=string(),
            reason=string(),
            tags=array(
                obj(text=string(), isPositive=boolean()),
                min_items=1,
            ),
        ),
        min_items=1,
        max_items=5,
    ),
    result_type=list[Alternative],
)

SHAPES: dict[AnalysisKind, OutputShape] = {
    shape.kind: shape
    for shape in (INTENT_SHAPE, TONE_SHAPE, IMPACT_SHAPE, ALTERNATIVES_SHAPE)
}


def get_shape(kind: AnalysisKind) -> OutputShape:
    return SHAPES[kind]
