"""
Exceptions for the model runtime layer.

Transport and runtime failures. None of these are GenerationErrors: the
retry engine lets them propagate untouched, connection-level retries
happen inside the client only.
"""


class LLMClientError(Exception):
    """
    Base exception for all model runtime errors.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotInitializedError(LLMClientError):
    """
    Raised when analysis is requested before the model runtime is ready.

    A caller-misuse signal; never retried.
    """

    def __init__(self, message: str = "LLM service not initialized. Call initialize() first."):
        super().__init__(message)


class LLMConnectionError(LLMClientError):
    """
    Unable to reach the inference server (DNS, refused, reset, ...).
    """


class LLMTimeoutError(LLMConnectionError):
    """
    The decode exceeded the client timeout.
    """


class LLMGenerationError(LLMClientError):
    """
    The inference server answered with an error or an unusable payload.
    """


class LLMModelNotAvailableError(LLMGenerationError):
    """
    The configured model is not present on the inference server.
    """
