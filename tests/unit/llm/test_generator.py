"""
Unit tests for ConstrainedGenerator.

One attempt: decode -> parse -> schema -> truncation -> typed result.
"""

import json

import pytest

from communication_mirror.llm.exceptions import LLMConnectionError
from communication_mirror.llm.generator import ConstrainedGenerator
from communication_mirror.models.analysis_models import IntentResult, ToneResult
from communication_mirror.models.llm_models import GenerationOptions
from communication_mirror.schema.definitions import INTENT_SHAPE, TONE_SHAPE
from communication_mirror.validation.exceptions import (
    FailureKind,
    ParseError,
    TruncationError,
    ValidationError,
)
from communication_mirror.validation.schema_validator import SchemaValidator


@pytest.fixture
def generator(recording_sink):
    return ConstrainedGenerator(event_sink=recording_sink)


async def run(generator, runtime, shape, options=None):
    return await generator.generate(
        "prompt text",
        shape,
        SchemaValidator(shape),
        runtime.default_lane(),
        options or GenerationOptions(temperature=0.5),
        session_id="s-1",
    )


# ============================================================================
# Accepted output
# ============================================================================


class TestAccepted:
    @pytest.mark.asyncio
    async def test_returns_typed_result(self, generator, make_runtime, intent_payload):
        runtime = make_runtime({"intent": intent_payload})

        result = await run(generator, runtime, INTENT_SHAPE)

        assert isinstance(result, IntentResult)
        assert result.implicit == intent_payload["implicit"]

    @pytest.mark.asyncio
    async def test_fenced_output_accepted(self, generator, make_runtime, tone_payload):
        runtime = make_runtime({"tone": f"```json\n{json.dumps(tone_payload)}\n```"})

        result = await run(generator, runtime, TONE_SHAPE)

        assert isinstance(result, ToneResult)

    @pytest.mark.asyncio
    async def test_max_tokens_defaults_to_lane_budget(self, generator, make_runtime, intent_payload):
        runtime = make_runtime({"intent": intent_payload}, context_size=2048)

        await run(generator, runtime, INTENT_SHAPE)

        assert runtime.calls[0]["options"].max_tokens == 2048

    @pytest.mark.asyncio
    async def test_explicit_max_tokens_kept(self, generator, make_runtime, intent_payload):
        runtime = make_runtime({"intent": intent_payload})

        await run(generator, runtime, INTENT_SHAPE, GenerationOptions(temperature=0.6, max_tokens=6000))

        assert runtime.calls[0]["options"].max_tokens == 6000

    @pytest.mark.asyncio
    async def test_events_reported(self, generator, make_runtime, intent_payload, recording_sink):
        runtime = make_runtime({"intent": intent_payload})

        await run(generator, runtime, INTENT_SHAPE)

        assert recording_sink.names() == ["request", "response"]
        assert recording_sink.events[0][2] == "prompt text"


# ============================================================================
# Rejected output
# ============================================================================


class TestRejected:
    @pytest.mark.asyncio
    async def test_unparseable(self, generator, make_runtime, recording_sink):
        runtime = make_runtime({"intent": "I think the intent is to get the document."})

        with pytest.raises(ParseError):
            await run(generator, runtime, INTENT_SHAPE)

        assert recording_sink.names() == ["request", "response", "error"]

    @pytest.mark.asyncio
    async def test_schema_invalid(self, generator, make_runtime, intent_payload):
        intent_payload["implicit"] = ""
        runtime = make_runtime({"intent": intent_payload})

        with pytest.raises(ValidationError) as exc_info:
            await run(generator, runtime, INTENT_SHAPE)

        assert exc_info.value.field_errors[0].kind is FailureKind.EMPTY_STRING

    @pytest.mark.asyncio
    async def test_truncated_leaf(self, generator, make_runtime, tone_payload):
        tone_payload["summary"] = "The plan is making{"
        runtime = make_runtime({"tone": tone_payload})

        with pytest.raises(TruncationError) as exc_info:
            await run(generator, runtime, TONE_SHAPE)

        assert exc_info.value.field_errors[0].path == ("summary",)

    @pytest.mark.asyncio
    async def test_runtime_error_propagates(self, generator, make_runtime, recording_sink):
        runtime = make_runtime({"intent": LLMConnectionError("refused")})

        with pytest.raises(LLMConnectionError):
            await run(generator, runtime, INTENT_SHAPE)

        assert recording_sink.names() == ["request", "error"]

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_break_generation(self, make_runtime, intent_payload):
        class BrokenSink:
            def on_request(self, *args):
                raise RuntimeError("sink down")

            def on_response(self, *args):
                raise RuntimeError("sink down")

        runtime = make_runtime({"intent": intent_payload})

        result = await run(ConstrainedGenerator(event_sink=BrokenSink()), runtime, INTENT_SHAPE)

        assert isinstance(result, IntentResult)
