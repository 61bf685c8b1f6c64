"""
Batch orchestration exceptions.
"""

from communication_mirror.models.enums import AnalysisKind


class BatchError(Exception):
    """
    One or more of the concurrent analyses failed.

    The batch is all-or-nothing: callers see this single aggregate error
    instead of a partially populated bundle.

    Attributes:
        failures: Underlying error per failed analysis kind
    """

    def __init__(self, failures: dict[AnalysisKind, Exception]):
        self.failures = dict(failures)
        parts = [f"{kind.value}: {error}" for kind, error in self.failures.items()]
        self.message = "Batch analysis failed: " + "; ".join(parts)
        super().__init__(self.message)

    @property
    def failed_kinds(self) -> list[AnalysisKind]:
        return list(self.failures)
