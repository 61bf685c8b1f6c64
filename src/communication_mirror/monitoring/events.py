"""
Generation event sinks.

The constrained generator reports each outbound prompt, each raw response
and each failure to an injected sink. Notifications are fire-and-forget: a
sink that raises is logged and ignored.
"""

from typing import Optional, Protocol

import structlog

from communication_mirror.models.enums import AnalysisKind
from communication_mirror.models.llm_models import GenerationOptions

logger = structlog.get_logger(__name__)


class GenerationEventSink(Protocol):
    """Receiver for generation lifecycle events."""

    def on_request(
        self,
        session_id: Optional[str],
        kind: AnalysisKind,
        prompt: str,
        options: GenerationOptions,
    ) -> None:
        ...

    def on_response(self, session_id: Optional[str], kind: AnalysisKind, raw_text: str) -> None:
        ...

    def on_error(
        self,
        session_id: Optional[str],
        kind: AnalysisKind,
        message: str,
        attempt: Optional[int] = None,
    ) -> None:
        ...


class NullEventSink:
    """Discards every event."""

    def on_request(self, session_id, kind, prompt, options) -> None:
        pass

    def on_response(self, session_id, kind, raw_text) -> None:
        pass

    def on_error(self, session_id, kind, message, attempt=None) -> None:
        pass


class StructlogEventSink:
    """Writes generation events to a structlog logger."""

    def __init__(self, event_logger=None):
        self._log = event_logger or structlog.get_logger("communication_mirror.generation")

    def on_request(self, session_id, kind, prompt, options) -> None:
        self._log.info(
            "generation.request",
            session_id=session_id,
            kind=kind.value,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            prompt_length=len(prompt),
            prompt=prompt,
        )

    def on_response(self, session_id, kind, raw_text) -> None:
        self._log.info(
            "generation.response",
            session_id=session_id,
            kind=kind.value,
            response_length=len(raw_text),
            raw_text=raw_text,
        )

    def on_error(self, session_id, kind, message, attempt=None) -> None:
        self._log.warning(
            "generation.error",
            session_id=session_id,
            kind=kind.value,
            attempt=attempt,
            error=message,
        )


def notify(sink: Optional[GenerationEventSink], event: str, *args, **kwargs) -> None:
    """Call `sink.<event>(...)`, never letting the sink affect control flow."""
    if sink is None:
        return
    try:
        getattr(sink, event)(*args, **kwargs)
    except Exception as e:
        logger.warning(
            "Generation event sink failed",
            sink_event=event,
            sink=type(sink).__name__,
            error=str(e),
        )
