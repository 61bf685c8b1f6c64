"""
Unit tests for OllamaRuntime.

The HTTP layer is replaced by httpx.MockTransport; no server is needed.
"""

import json

import httpx
import pytest

from communication_mirror.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
    NotInitializedError,
)
from communication_mirror.llm.ollama_client import OllamaRuntime
from communication_mirror.models.llm_models import GenerationOptions, LLMGenerationRequest
from communication_mirror.schema.definitions import IMPACT_SHAPE, INTENT_SHAPE


def generate_reply(content, **extra):
    body = {
        "model": "qwen2.5:7b",
        "response": content,
        "done": True,
        "done_reason": "stop",
        "prompt_eval_count": 120,
        "eval_count": 40,
    }
    body.update(extra)
    return httpx.Response(200, json=body)


def make_runtime(handler, **kwargs):
    """Runtime wired to a mock transport, no backoff between network retries."""
    kwargs.setdefault("max_retries", 1)
    return OllamaRuntime(
        base_url="http://ollama.test",
        model="qwen2.5:7b",
        system_prompt="SYSTEM",
        context_size=4096,
        backoff_base=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class Recorder:
    """Mock transport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def body(self, index=0):
        return json.loads(self.requests[index].content)


# ============================================================================
# Initialization
# ============================================================================


class TestInitialize:
    @pytest.mark.asyncio
    async def test_initialize_checks_model(self):
        recorder = Recorder(httpx.Response(200, json={"details": {"family": "qwen2"}}))
        runtime = make_runtime(recorder)

        await runtime.initialize()

        assert runtime.is_initialized
        assert recorder.requests[0].url.path == "/api/show"
        assert recorder.body() == {"model": "qwen2.5:7b"}
        await runtime.close()

    @pytest.mark.asyncio
    async def test_missing_model(self):
        runtime = make_runtime(Recorder(httpx.Response(404, json={"error": "not found"})))

        with pytest.raises(LLMModelNotAvailableError):
            await runtime.initialize()

        assert not runtime.is_initialized
        await runtime.close()

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        runtime = make_runtime(Recorder(httpx.ConnectError("refused")))

        with pytest.raises(LLMConnectionError):
            await runtime.initialize()

        await runtime.close()

    def test_default_lane_requires_initialize(self):
        runtime = make_runtime(Recorder(generate_reply("{}")))

        with pytest.raises(NotInitializedError):
            runtime.default_lane()

    @pytest.mark.asyncio
    async def test_open_lanes_requires_initialize(self):
        runtime = make_runtime(Recorder(generate_reply("{}")))

        with pytest.raises(NotInitializedError):
            async with runtime.open_lanes(4):
                pass


# ============================================================================
# Decoding
# ============================================================================


class TestDecode:
    @pytest.mark.asyncio
    async def test_payload_carries_schema_and_options(self):
        recorder = Recorder(httpx.Response(200, json={}), generate_reply('{"primary": "a"}'))
        runtime = make_runtime(recorder)
        await runtime.initialize()

        text = await runtime.default_lane().decode(
            "PROMPT", INTENT_SHAPE, GenerationOptions(temperature=0.5, max_tokens=512)
        )

        assert text == '{"primary": "a"}'
        body = recorder.body(1)
        assert recorder.requests[1].url.path == "/api/generate"
        assert body["prompt"] == "PROMPT"
        assert body["system"] == "SYSTEM"
        assert body["stream"] is False
        assert body["format"] == INTENT_SHAPE.decode_schema()
        assert body["options"] == {"temperature": 0.5, "num_predict": 512, "num_ctx": 4096}
        await runtime.close()

    @pytest.mark.asyncio
    async def test_decode_schema_has_no_validator_keywords(self):
        recorder = Recorder(httpx.Response(200, json={}), generate_reply("{}"))
        runtime = make_runtime(recorder)
        await runtime.initialize()

        await runtime.default_lane().decode("P", IMPACT_SHAPE, GenerationOptions())

        assert "uniqueBy" not in json.dumps(recorder.body(1)["format"])
        await runtime.close()

    @pytest.mark.asyncio
    async def test_batch_lanes_are_distinct(self):
        recorder = Recorder(httpx.Response(200, json={}), generate_reply("{}"))
        runtime = make_runtime(recorder)
        await runtime.initialize()

        async with runtime.open_lanes(4) as lanes:
            assert [lane.name for lane in lanes] == ["batch-0", "batch-1", "batch-2", "batch-3"]
            await lanes[2].decode("P", INTENT_SHAPE, GenerationOptions())
            client = lanes[0]._client

        assert client.is_closed
        await runtime.close()


# ============================================================================
# Errors
# ============================================================================


class TestErrors:
    @pytest.mark.asyncio
    async def test_timeout(self):
        runtime = make_runtime(Recorder(httpx.ReadTimeout("slow")))
        client = await runtime._get_client()

        with pytest.raises(LLMTimeoutError):
            await runtime.generate(client, _request())

        await runtime.close()

    @pytest.mark.asyncio
    async def test_network_error_retried(self):
        recorder = Recorder(httpx.ConnectError("reset"), generate_reply("{}"))
        runtime = make_runtime(recorder, max_retries=2)
        client = await runtime._get_client()

        response = await runtime.generate(client, _request())

        assert response.content == "{}"
        assert len(recorder.requests) == 2
        await runtime.close()

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        recorder = Recorder(httpx.Response(400, text="bad request"))
        runtime = make_runtime(recorder, max_retries=3)
        client = await runtime._get_client()

        with pytest.raises(LLMGenerationError):
            await runtime.generate(client, _request())

        assert len(recorder.requests) == 1
        await runtime.close()

    @pytest.mark.asyncio
    async def test_model_not_found_on_generate(self):
        runtime = make_runtime(Recorder(httpx.Response(404, text="model not found")))
        client = await runtime._get_client()

        with pytest.raises(LLMModelNotAvailableError):
            await runtime.generate(client, _request())

        await runtime.close()

    @pytest.mark.asyncio
    async def test_invalid_envelope(self):
        runtime = make_runtime(Recorder(httpx.Response(200, text="<html>")))
        client = await runtime._get_client()

        with pytest.raises(LLMGenerationError):
            await runtime.generate(client, _request())

        await runtime.close()

    @pytest.mark.asyncio
    async def test_no_request_attempted(self):
        recorder = Recorder(generate_reply("{}"))
        runtime = make_runtime(recorder)
        runtime.max_retries = 0
        client = await runtime._get_client()

        with pytest.raises(LLMGenerationError, match="Generation failed after all retries"):
            await runtime.generate(client, _request())

        assert recorder.requests == []
        await runtime.close()

    @pytest.mark.asyncio
    async def test_health_check_never_raises(self):
        runtime = make_runtime(Recorder(httpx.ConnectError("down")))

        assert await runtime.health_check() is False
        await runtime.close()


def _request():
    return LLMGenerationRequest(prompt="P", model="qwen2.5:7b", format_schema=INTENT_SHAPE.decode_schema())
