"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests:
settings, model-output payloads, a scripted model runtime, a fake clock and a
recording event sink.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from communication_mirror.config import Settings
from communication_mirror.llm.base_client import ExecutionLane, ModelRuntime
from communication_mirror.models.analysis_models import (
    Alternative,
    AnalysisBundle,
    ImpactResult,
    IntentResult,
    ToneResult,
)
from communication_mirror.models.llm_models import GenerationOptions
from communication_mirror.schema.shapes import OutputShape


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.MAX_MESSAGE_LENGTH = 10
    """
    return Settings(
        # === Application ===
        APP_NAME="Communication Mirror (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Ollama ===
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_MODEL="qwen2.5:7b",
        OLLAMA_TIMEOUT=60,

        # === Model Runtime ===
        LLM_CONTEXT_SIZE=4096,
        LLM_BATCH_LANES=4,

        # === Sessions ===
        SESSION_MAX_INTERACTIONS=10,
        SESSION_TTL_SECONDS=86400,
        SESSION_SWEEP_INTERVAL_SECONDS=3600,

        # === Monitoring ===
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


def _load(fixtures_dir: Path, name: str) -> Any:
    with open(fixtures_dir / name) as f:
        return json.load(f)


@pytest.fixture
def intent_payload(fixtures_dir: Path) -> Dict[str, Any]:
    """Valid intent output as decoded JSON."""
    return _load(fixtures_dir, "intent_response.json")


@pytest.fixture
def tone_payload(fixtures_dir: Path) -> Dict[str, Any]:
    """Valid tone output as decoded JSON."""
    return _load(fixtures_dir, "tone_response.json")


@pytest.fixture
def impact_payload(fixtures_dir: Path) -> Dict[str, Any]:
    """Valid impact output as decoded JSON (categories already consistent)."""
    return _load(fixtures_dir, "impact_response.json")


@pytest.fixture
def alternatives_payload(fixtures_dir: Path) -> list[Dict[str, Any]]:
    """Valid alternatives output (3 items) as decoded JSON."""
    return _load(fixtures_dir, "alternatives_response.json")


@pytest.fixture
def valid_payloads(intent_payload, tone_payload, impact_payload, alternatives_payload) -> Dict[str, Any]:
    """Valid output per shape name, ready to script a runtime with."""
    return {
        "intent": intent_payload,
        "tone": tone_payload,
        "impact": impact_payload,
        "alternatives": alternatives_payload,
    }


@pytest.fixture
def sample_bundle(intent_payload, tone_payload, impact_payload, alternatives_payload) -> AnalysisBundle:
    """AnalysisBundle built from the payload fixtures."""
    return AnalysisBundle(
        intent=IntentResult(**intent_payload),
        tone=ToneResult(**tone_payload),
        impact=ImpactResult(**impact_payload),
        alternatives=[Alternative(**item) for item in alternatives_payload],
    )


# ============================================================================
# Scripted model runtime
# ============================================================================


class ScriptedLane(ExecutionLane):
    """Lane that answers from its runtime's script."""

    def __init__(self, runtime: "ScriptedRuntime", name: str, context_size: int):
        super().__init__(name, context_size)
        self.runtime = runtime

    async def _decode(self, prompt: str, shape: OutputShape, options: GenerationOptions) -> str:
        return self.runtime.next_response(self.name, prompt, shape, options)


class ScriptedRuntime(ModelRuntime):
    """Model runtime returning scripted raw text per shape name.

    Each script entry is a queue; the last entry repeats once the queue is
    down to one item. An entry may be a str (returned verbatim), any other
    JSON value (serialized) or an exception instance (raised).
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None, context_size: int = 4096):
        super().__init__(context_size=context_size)
        self.responses: Dict[str, list] = {}
        self.calls: list[Dict[str, Any]] = []
        self.acquired: list[int] = []
        self.released = 0
        self.initialize_error: Optional[Exception] = None
        self._default_lane = ScriptedLane(self, "default", context_size)
        for name, response in (responses or {}).items():
            self.script(name, response)

    def script(self, shape_name: str, *outputs: Any) -> None:
        self.responses[shape_name] = list(outputs)

    def next_response(self, lane: str, prompt: str, shape: OutputShape, options: GenerationOptions) -> str:
        self.calls.append({"lane": lane, "kind": shape.name, "prompt": prompt, "options": options})
        queue = self.responses.get(shape.name)
        if not queue:
            raise AssertionError(f"No scripted response for {shape.name}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item if isinstance(item, str) else json.dumps(item)

    def calls_for(self, shape_name: str) -> list[Dict[str, Any]]:
        return [call for call in self.calls if call["kind"] == shape_name]

    async def _initialize(self) -> None:
        if self.initialize_error is not None:
            raise self.initialize_error

    async def health_check(self) -> bool:
        return True

    def default_lane(self) -> ExecutionLane:
        return self._default_lane

    async def _acquire_lanes(self, count: int) -> list[ExecutionLane]:
        self.acquired.append(count)
        return [ScriptedLane(self, f"batch-{i}", self.context_size) for i in range(count)]

    async def _release_lanes(self, lanes: list[ExecutionLane]) -> None:
        self.released += 1


@pytest.fixture
def make_runtime():
    """Factory fixture to create a ScriptedRuntime.

    Usage:
        def test_something(make_runtime, valid_payloads):
            runtime = make_runtime(valid_payloads)
            runtime.script("tone", bad_output, good_output)
    """
    def _create(responses: Optional[Dict[str, Any]] = None, context_size: int = 4096) -> ScriptedRuntime:
        return ScriptedRuntime(responses, context_size=context_size)

    return _create


# ============================================================================
# Clock and event sink
# ============================================================================


class FakeClock:
    """Settable UTC clock for session-store tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


class RecordingEventSink:
    """Event sink that records every notification as (event, kind, payload)."""

    def __init__(self):
        self.events: list[tuple] = []

    def on_request(self, session_id, kind, prompt, options) -> None:
        self.events.append(("request", kind, prompt))

    def on_response(self, session_id, kind, raw_text) -> None:
        self.events.append(("response", kind, raw_text))

    def on_error(self, session_id, kind, message, attempt=None) -> None:
        self.events.append(("error", kind, message))

    def names(self) -> list[str]:
        return [event[0] for event in self.events]


@pytest.fixture
def recording_sink() -> RecordingEventSink:
    return RecordingEventSink()
