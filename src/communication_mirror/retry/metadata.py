"""
Retry history of one logical generation.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryMetadata:
    """
    Attempt history for logs and error reporting.

    Attributes:
        kind: Analysis kind that was generated
        total_attempts: Number of constrained generations issued
        total_latency_ms: Time from first attempt to final outcome (ms)
        failures: One entry per rejected attempt
            ({"attempt", "error_type", "failure_kind", "message"})
    """

    kind: str
    total_attempts: int
    total_latency_ms: int
    failures: list[dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.total_attempts < 1:
            raise ValueError("total_attempts must be >= 1")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")

        if len(self.failures) > self.total_attempts:
            raise ValueError("failures cannot outnumber attempts")

    @property
    def retried(self) -> bool:
        return self.total_attempts > 1
