"""
Retry engine: corrective feedback around the constrained generator.

Policy:
    1. Attempt 1 uses prompt_builder(message, prior_context)
    2. On a ParseError / ValidationError / TruncationError, attempt 2 uses
       retry_prompt_builder(original_prompt, error): the original prompt
       plus the exact error text and a corrective block chosen from the
       error's failure tags
    3. If the last attempt fails too: ExhaustedRetriesError

Attempts are strictly sequential and there is no backoff between them.
Runtime errors (LLMClientError, NotInitializedError) propagate untouched.

Usage:
    engine = RetryEngine(generator)
    tone = await engine.generate_with_retry(
        builder, TONE_SHAPE, validator, message, lane, context, options, retry_builder
    )
"""

import time
from typing import Any, Callable, Optional

import structlog

from communication_mirror.llm.base_client import ExecutionLane
from communication_mirror.llm.generator import ConstrainedGenerator
from communication_mirror.models.llm_models import GenerationOptions
from communication_mirror.monitoring.metrics import retries_total
from communication_mirror.retry.exceptions import ExhaustedRetriesError
from communication_mirror.retry.metadata import RetryMetadata
from communication_mirror.schema.shapes import OutputShape
from communication_mirror.validation.exceptions import GenerationError
from communication_mirror.validation.schema_validator import SchemaValidator

logger = structlog.get_logger(__name__)

PromptBuilderFn = Callable[[str, Optional[str]], str]
RetryPromptBuilderFn = Callable[[str, GenerationError], str]

DEFAULT_MAX_ATTEMPTS = 2


class RetryEngine:
    """
    Runs one logical generation with at most `max_attempts` attempts.

    Attributes:
        generator: Constrained generator used for every attempt
        max_attempts: Total attempts including the first one
    """

    def __init__(self, generator: ConstrainedGenerator, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.generator = generator
        self.max_attempts = max_attempts

    async def generate_with_retry(
        self,
        prompt_builder: PromptBuilderFn,
        shape: OutputShape,
        validator: SchemaValidator,
        message: str,
        lane: ExecutionLane,
        prior_context: Optional[str],
        options: GenerationOptions,
        retry_prompt_builder: RetryPromptBuilderFn,
        *,
        session_id: Optional[str] = None,
    ) -> Any:
        """
        Generate `shape` for `message`, retrying once with corrective feedback.

        Returns:
            Checked value of `shape.result_type`

        Raises:
            ExhaustedRetriesError: Every attempt was rejected
            LLMClientError: Runtime failure (propagated, not retried)
        """
        start_time = time.monotonic()
        kind = shape.kind
        original_prompt = prompt_builder(message, prior_context)
        failures: list[dict] = []
        last_error: Optional[GenerationError] = None

        for attempt in range(1, self.max_attempts + 1):
            if last_error is None:
                prompt = original_prompt
            else:
                prompt = retry_prompt_builder(original_prompt, last_error)
                logger.info(
                    "Retrying generation with corrective prompt",
                    kind=kind.value,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    previous_error=type(last_error).__name__,
                )

            try:
                result = await self.generator.generate(
                    prompt,
                    shape,
                    validator,
                    lane,
                    options,
                    session_id=session_id,
                    attempt=attempt,
                )
            except GenerationError as e:
                last_error = e
                failures.append(
                    {
                        "attempt": attempt,
                        "error_type": type(e).__name__,
                        "failure_kind": e.failure_kind.value,
                        "message": e.message,
                    }
                )
                if attempt > 1:
                    retries_total.labels(kind=kind.value, success="false").inc()
                continue

            if attempt > 1:
                retries_total.labels(kind=kind.value, success="true").inc()
            logger.info(
                "Generation succeeded",
                kind=kind.value,
                attempts=attempt,
                latency_ms=int((time.monotonic() - start_time) * 1000),
            )
            return result

        if last_error is None:
            raise ValueError(f"No generation attempt was made (max_attempts={self.max_attempts})")
        metadata = RetryMetadata(
            kind=kind.value,
            total_attempts=self.max_attempts,
            total_latency_ms=int((time.monotonic() - start_time) * 1000),
            failures=failures,
        )
        logger.error(
            "Generation failed after all attempts",
            kind=kind.value,
            total_attempts=metadata.total_attempts,
            total_latency_ms=metadata.total_latency_ms,
            failure_kinds=[f["failure_kind"] for f in failures],
        )
        raise ExhaustedRetriesError(
            kind=kind,
            attempts=self.max_attempts,
            last_error=last_error,
            retry_metadata=metadata,
        )
