"""
Analysis service: single-kind calls and the batch orchestrator.

Owns the generation stack for one process:

    PromptBuilder ─┐
                   ├─> RetryEngine ─> ConstrainedGenerator ─> ExecutionLane
    profiles ──────┘
                                   ─> post-processor ─> result

Constructed explicitly by the composition root and passed by reference;
there is no module-level instance.
"""

import asyncio
import time
from typing import Any, Optional

import structlog

from communication_mirror.analysis.exceptions import BatchError
from communication_mirror.analysis.profiles import AnalysisProfile, build_profiles
from communication_mirror.config import Settings
from communication_mirror.llm.base_client import ExecutionLane, ModelRuntime
from communication_mirror.llm.generator import ConstrainedGenerator
from communication_mirror.llm.prompt_builder import PromptBuilder
from communication_mirror.models.analysis_models import (
    Alternative,
    AnalysisBundle,
    ImpactResult,
    IntentResult,
    ToneResult,
)
from communication_mirror.models.enums import AnalysisKind
from communication_mirror.monitoring.events import GenerationEventSink
from communication_mirror.monitoring.metrics import batch_requests_total
from communication_mirror.retry.engine import RetryEngine

logger = structlog.get_logger(__name__)

BATCH_KINDS = tuple(AnalysisKind)


class AnalysisService:
    """
    Runs the four analyses against a model runtime.

    Attributes:
        runtime: Model runtime providing execution lanes
        prompt_builder: Per-kind and retry prompt construction
        retry_engine: Corrective retry around the constrained generator
        profiles: Shape / validator / options / post-processor per kind
        batch_lanes: Lanes opened per batch (one per kind by default)
    """

    def __init__(
        self,
        runtime: ModelRuntime,
        prompt_builder: PromptBuilder,
        settings: Settings,
        event_sink: Optional[GenerationEventSink] = None,
    ):
        if settings.LLM_BATCH_LANES < 1:
            raise ValueError("LLM_BATCH_LANES must be >= 1")
        self.runtime = runtime
        self.prompt_builder = prompt_builder
        self.generator = ConstrainedGenerator(event_sink=event_sink)
        self.retry_engine = RetryEngine(
            self.generator, max_attempts=settings.GENERATION_MAX_ATTEMPTS
        )
        self.profiles: dict[AnalysisKind, AnalysisProfile] = build_profiles(settings)
        self.batch_lanes = settings.LLM_BATCH_LANES

    # === Lifecycle ===

    @property
    def initialized(self) -> bool:
        return self.runtime.is_initialized

    async def initialize(self) -> None:
        """Initialize the model runtime. Idempotent."""
        await self.runtime.initialize()

    async def dispose(self) -> None:
        await self.runtime.close()

    # === Single generation ===

    async def _generate(
        self,
        kind: AnalysisKind,
        message: str,
        lane: ExecutionLane,
        context: Optional[str],
        session_id: Optional[str],
    ) -> Any:
        """Checked, not yet post-processed value for one kind."""
        profile = self.profiles[kind]
        return await self.retry_engine.generate_with_retry(
            self.prompt_builder.builder_for(kind),
            profile.shape,
            profile.validator,
            message,
            lane,
            context,
            profile.options,
            self.prompt_builder.build_retry_prompt,
            session_id=session_id,
        )

    async def _analyze_single(
        self,
        kind: AnalysisKind,
        message: str,
        context: Optional[str],
        session_id: Optional[str],
    ) -> Any:
        self.runtime.ensure_initialized()
        value = await self._generate(
            kind, message, self.runtime.default_lane(), context, session_id
        )
        return self.profiles[kind].postprocess(value)

    async def analyze_intent(
        self, message: str, context: Optional[str] = None, session_id: Optional[str] = None
    ) -> IntentResult:
        return await self._analyze_single(AnalysisKind.INTENT, message, context, session_id)

    async def analyze_tone(
        self, message: str, context: Optional[str] = None, session_id: Optional[str] = None
    ) -> ToneResult:
        return await self._analyze_single(AnalysisKind.TONE, message, context, session_id)

    async def predict_impact(
        self, message: str, context: Optional[str] = None, session_id: Optional[str] = None
    ) -> ImpactResult:
        return await self._analyze_single(AnalysisKind.IMPACT, message, context, session_id)

    async def generate_alternatives(
        self, message: str, context: Optional[str] = None, session_id: Optional[str] = None
    ) -> list[Alternative]:
        return await self._analyze_single(AnalysisKind.ALTERNATIVES, message, context, session_id)

    async def analyze_kind(
        self,
        kind: AnalysisKind,
        message: str,
        context: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Any:
        """Single-kind analysis selected by tag."""
        return await self._analyze_single(kind, message, context, session_id)

    # === Batch ===

    async def analyze_batched(
        self,
        message: str,
        context: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> AnalysisBundle:
        """
        Run all four analyses concurrently and post-process the results.

        Each kind gets its own lane from a transient lane scope; the scope is
        released on success and on failure.

        Args:
            message: User message
            context: Formatted conversation context shared by all four prompts
            session_id: Conversation id for event reporting

        Returns:
            Post-processed AnalysisBundle

        Raises:
            NotInitializedError: Runtime not initialized
            BatchError: At least one analysis failed (all-or-nothing)
        """
        self.runtime.ensure_initialized()
        start_time = time.monotonic()

        async with self.runtime.open_lanes(self.batch_lanes) as lanes:
            results = await asyncio.gather(
                *(
                    self._generate(kind, message, lanes[i % len(lanes)], context, session_id)
                    for i, kind in enumerate(BATCH_KINDS)
                ),
                return_exceptions=True,
            )

        failures: dict[AnalysisKind, Exception] = {}
        values: dict[AnalysisKind, Any] = {}
        for kind, result in zip(BATCH_KINDS, results):
            if isinstance(result, Exception):
                failures[kind] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                values[kind] = result

        latency_ms = int((time.monotonic() - start_time) * 1000)

        if failures:
            batch_requests_total.labels(status="failure").inc()
            logger.error(
                "Batch analysis failed",
                failed_kinds=[kind.value for kind in failures],
                latency_ms=latency_ms,
            )
            raise BatchError(failures)

        bundle = AnalysisBundle(
            intent=self.profiles[AnalysisKind.INTENT].postprocess(values[AnalysisKind.INTENT]),
            tone=self.profiles[AnalysisKind.TONE].postprocess(values[AnalysisKind.TONE]),
            impact=self.profiles[AnalysisKind.IMPACT].postprocess(values[AnalysisKind.IMPACT]),
            alternatives=self.profiles[AnalysisKind.ALTERNATIVES].postprocess(
                values[AnalysisKind.ALTERNATIVES]
            ),
        )

        batch_requests_total.labels(status="success").inc()
        logger.info(
            "Batch analysis complete",
            session_id=session_id,
            alternatives=len(bundle.alternatives),
            latency_ms=latency_ms,
        )
        return bundle
