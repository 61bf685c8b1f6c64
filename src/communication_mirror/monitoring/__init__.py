"""
Monitoring: Prometheus collectors and generation event sinks.
"""

from communication_mirror.monitoring.events import (
    GenerationEventSink,
    NullEventSink,
    StructlogEventSink,
)

__all__ = ["GenerationEventSink", "NullEventSink", "StructlogEventSink"]
