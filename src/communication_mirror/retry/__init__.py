"""
Corrective retry around constrained generation.

- engine: RetryEngine (two attempts, corrective prompt on the second)
- exceptions: ExhaustedRetriesError
- metadata: RetryMetadata attempt history
"""

from communication_mirror.retry.engine import RetryEngine
from communication_mirror.retry.exceptions import ExhaustedRetriesError
from communication_mirror.retry.metadata import RetryMetadata

__all__ = ["ExhaustedRetriesError", "RetryEngine", "RetryMetadata"]
