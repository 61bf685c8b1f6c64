"""
Impact normalizer.

Repairs schema-valid but internally inconsistent impact output:
1. Category is recomputed from value (the value is authoritative)
2. Low cooperation with no friction and no strain is impossible: Friction
   and Strain are raised to the medium tier
3. A Cooperation Likelihood of exactly 0 is raised to the medium tier

Pure and idempotent: normalize_impact(normalize_impact(x)) == normalize_impact(x).
"""

import structlog

from communication_mirror.models.analysis_models import ImpactMetric, ImpactResult
from communication_mirror.models.enums import ImpactCategory, MetricName
from communication_mirror.monitoring.metrics import postprocessing_corrections_total
from communication_mirror.postprocessing.policy import (
    CONSISTENCY_BUMP_VALUE,
    COOPERATION_FLOOR_VALUE,
    LOW_MAX,
    MEDIUM_MAX,
)

logger = structlog.get_logger(__name__)


def category_for(value: int) -> ImpactCategory:
    """Tier implied by a 0-100 value."""
    if value <= LOW_MAX:
        return ImpactCategory.LOW
    if value <= MEDIUM_MAX:
        return ImpactCategory.MEDIUM
    return ImpactCategory.HIGH


def _record(correction: str) -> None:
    postprocessing_corrections_total.labels(processor="impact", correction=correction).inc()


def _with_value(metric: ImpactMetric, value: int) -> ImpactMetric:
    return metric.model_copy(update={"value": value, "category": category_for(value)})


def normalize_impact(impact: ImpactResult) -> ImpactResult:
    """
    Return a copy of `impact` with consistent categories and metrics.

    Args:
        impact: Schema-valid impact result

    Returns:
        New ImpactResult; the input is not modified
    """
    metrics: dict[MetricName, ImpactMetric] = {}
    order: list[MetricName] = []

    for metric in impact.metrics:
        category = category_for(metric.value)
        if metric.category != category:
            logger.warning(
                "Corrected impact category",
                metric=metric.name.value,
                value=metric.value,
                was=metric.category.value,
                corrected=category.value,
            )
            _record("category")
            metric = metric.model_copy(update={"category": category})
        metrics[metric.name] = metric
        order.append(metric.name)

    cooperation = metrics.get(MetricName.COOPERATION)
    friction = metrics.get(MetricName.EMOTIONAL_FRICTION)
    strain = metrics.get(MetricName.RELATIONSHIP_STRAIN)

    if cooperation is not None and friction is not None and strain is not None:
        if cooperation.value <= LOW_MAX and friction.value <= LOW_MAX and strain.value <= LOW_MAX:
            logger.warning(
                "Low cooperation without friction or strain, raising both to medium",
                cooperation=cooperation.value,
                friction=friction.value,
                strain=strain.value,
            )
            for name in (MetricName.EMOTIONAL_FRICTION, MetricName.RELATIONSHIP_STRAIN):
                if metrics[name].value <= LOW_MAX:
                    metrics[name] = _with_value(metrics[name], CONSISTENCY_BUMP_VALUE)
                    _record("consistency")

        if cooperation.value == 0:
            logger.warning(
                "Unrealistic cooperation likelihood of 0, raising to medium",
                corrected=COOPERATION_FLOOR_VALUE,
            )
            metrics[MetricName.COOPERATION] = _with_value(cooperation, COOPERATION_FLOOR_VALUE)
            _record("cooperation_floor")

    return impact.model_copy(update={"metrics": [metrics[name] for name in order]})
