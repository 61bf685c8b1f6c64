"""
Retry engine exceptions.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from communication_mirror.models.enums import AnalysisKind
    from communication_mirror.retry.metadata import RetryMetadata
    from communication_mirror.validation.exceptions import GenerationError


class ExhaustedRetriesError(Exception):
    """
    Raised when every attempt of one logical generation was rejected.

    Attributes:
        kind: Analysis kind that failed
        attempts: Number of attempts made
        last_error: Error of the final attempt
        retry_metadata: Full attempt history
    """

    def __init__(
        self,
        kind: "AnalysisKind",
        attempts: int,
        last_error: "GenerationError",
        retry_metadata: "RetryMetadata | None" = None,
    ) -> None:
        self.kind = kind
        self.attempts = attempts
        self.last_error = last_error
        self.retry_metadata = retry_metadata
        self.message = f"Failed after {attempts} attempts: {last_error.message}"
        super().__init__(self.message)
