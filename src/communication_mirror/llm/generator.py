"""
Constrained generation: one decode, fully checked.

Pipeline for a single attempt:
1. Decode the prompt on an execution lane under the shape constraint
2. Parse (strict, then permissive fenced-JSON fallback) -> ParseError
3. Schema validation -> ValidationError
4. Truncation check over every string leaf -> TruncationError
5. Convert to the shape's result type

Either a fully checked value comes back or a GenerationError is raised;
nothing partial ever escapes.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from communication_mirror.llm.base_client import ExecutionLane
from communication_mirror.llm.exceptions import LLMClientError
from communication_mirror.models.llm_models import GenerationOptions
from communication_mirror.monitoring.events import GenerationEventSink, notify
from communication_mirror.monitoring.metrics import generation_attempts_total
from communication_mirror.schema.shapes import OutputShape
from communication_mirror.validation.exceptions import (
    FailureKind,
    FieldError,
    GenerationError,
    ParseError,
    TruncationError,
    ValidationError,
)
from communication_mirror.validation.parsing import parse_output
from communication_mirror.validation.schema_validator import SchemaValidator
from communication_mirror.validation.truncation import ensure_not_truncated

logger = structlog.get_logger(__name__)

_OUTCOME_BY_ERROR = {
    ParseError: "parse_error",
    ValidationError: "validation_error",
    TruncationError: "truncation_error",
}


class ConstrainedGenerator:
    """
    Issues one prompt under a shape constraint and returns a checked value.

    Attributes:
        event_sink: Optional receiver of request/response/error events
    """

    def __init__(self, event_sink: Optional[GenerationEventSink] = None):
        self.event_sink = event_sink

    async def generate(
        self,
        prompt: str,
        shape: OutputShape,
        validator: SchemaValidator,
        lane: ExecutionLane,
        options: GenerationOptions,
        *,
        session_id: Optional[str] = None,
        attempt: int = 1,
    ) -> Any:
        """
        Run one constrained generation.

        Args:
            prompt: Fully built prompt
            shape: Target output shape (also the decode constraint)
            validator: Schema validator for `shape`
            lane: Execution lane to decode on
            options: Temperature / token budget; max_tokens defaults to the lane budget
            session_id: Conversation id for event reporting
            attempt: Attempt number for event reporting

        Returns:
            Value of `shape.result_type`

        Raises:
            ParseError, ValidationError, TruncationError: Output rejected
            LLMClientError: Runtime / transport failure (not recoverable here)
        """
        kind = shape.kind
        if options.max_tokens is None:
            options = options.model_copy(update={"max_tokens": lane.context_size})

        notify(self.event_sink, "on_request", session_id, kind, prompt, options)

        try:
            raw_text = await lane.decode(prompt, shape, options)
        except LLMClientError as e:
            notify(self.event_sink, "on_error", session_id, kind, e.message, attempt)
            raise

        notify(self.event_sink, "on_response", session_id, kind, raw_text)

        try:
            value = parse_output(raw_text, shape)
            validator.check(value)
            ensure_not_truncated(value)
            result = self._build(shape, value)
        except GenerationError as e:
            generation_attempts_total.labels(
                kind=kind.value, outcome=_OUTCOME_BY_ERROR.get(type(e), "error")
            ).inc()
            notify(self.event_sink, "on_error", session_id, kind, e.message, attempt)
            logger.warning(
                "Generation rejected",
                kind=kind.value,
                attempt=attempt,
                lane=lane.name,
                error_type=type(e).__name__,
                error=e.message,
            )
            raise

        generation_attempts_total.labels(kind=kind.value, outcome="success").inc()
        logger.debug("Generation accepted", kind=kind.value, attempt=attempt, lane=lane.name)
        return result

    @staticmethod
    def _build(shape: OutputShape, value: Any) -> Any:
        try:
            return shape.build(value)
        except PydanticValidationError as e:
            raise ValidationError(
                [
                    FieldError(
                        path=tuple(err["loc"]),
                        kind=FailureKind.INVALID,
                        message=err["msg"],
                    )
                    for err in e.errors()
                ],
                shape_name=shape.name,
            ) from e
