"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to HTTP status codes. Every body has the shape
{error, message, details, timestamp}.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from communication_mirror.analysis.exceptions import BatchError
from communication_mirror.api.exceptions import InvalidRequestError, SessionNotFoundError
from communication_mirror.llm.exceptions import (
    LLMConnectionError,
    LLMTimeoutError,
    NotInitializedError,
)
from communication_mirror.retry.exceptions import ExhaustedRetriesError

logger = structlog.get_logger(__name__)


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle invalid request bodies and path parameters.

    Maps to 400 Bad Request (client error).
    """
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    logger.warning("Invalid request format", errors=details)
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "invalid_request",
        "Request validation failed",
        details,
    )


async def invalid_request_error_handler(
    request: Request, exc: InvalidRequestError
) -> JSONResponse:
    logger.warning("Invalid request", code=exc.code, error=exc.message)
    return error_response(status.HTTP_400_BAD_REQUEST, exc.code, exc.message)


async def session_not_found_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
    return error_response(
        status.HTTP_404_NOT_FOUND,
        "session_not_found",
        exc.message,
        {"session_id": exc.session_id},
    )


async def not_initialized_error_handler(
    request: Request, exc: NotInitializedError
) -> JSONResponse:
    """
    Handle analysis requests made before the model is ready.

    Maps to 503 Service Unavailable (temporary).
    """
    logger.warning("Model not ready", error=exc.message)
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "model_not_ready", exc.message)


async def exhausted_retries_handler(request: Request, exc: ExhaustedRetriesError) -> JSONResponse:
    """
    Handle a single-kind analysis whose attempts were all rejected.

    Maps to 503 Service Unavailable (model output, not the client, was at fault).
    """
    metadata = exc.retry_metadata
    logger.error(
        "Generation failed after retries",
        kind=exc.kind.value,
        attempts=exc.attempts,
        last_error=exc.last_error.message,
        failures=metadata.failures if metadata else None,
    )
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "generation_failed",
        exc.message,
        {"kind": exc.kind.value, "attempts": exc.attempts},
    )


async def batch_error_handler(request: Request, exc: BatchError) -> JSONResponse:
    """
    Handle a batch in which at least one analysis failed.

    Maps to 503 Service Unavailable.
    """
    failures = {kind.value: str(error) for kind, error in exc.failures.items()}
    logger.error("Batch analysis failed", failures=failures)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "analysis_failed",
        "Unable to complete the analysis",
        {"failures": failures},
    )


async def llm_connection_error_handler(request: Request, exc: LLMConnectionError) -> JSONResponse:
    """
    Handle model server connection errors.

    Maps to 502 Bad Gateway (upstream service unavailable).
    """
    logger.error("LLM connection error", error=exc.message)
    return error_response(
        status.HTTP_502_BAD_GATEWAY,
        "llm_connection_failed",
        "Unable to connect to LLM inference server",
    )


async def llm_timeout_error_handler(request: Request, exc: LLMTimeoutError) -> JSONResponse:
    """
    Handle model server timeouts.

    Maps to 504 Gateway Timeout.
    """
    logger.error("LLM timeout error", error=exc.message)
    return error_response(
        status.HTTP_504_GATEWAY_TIMEOUT,
        "llm_timeout",
        "LLM inference server request timed out",
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    RequestValidationError: request_validation_error_handler,
    InvalidRequestError: invalid_request_error_handler,
    SessionNotFoundError: session_not_found_handler,
    NotInitializedError: not_initialized_error_handler,
    ExhaustedRetriesError: exhausted_retries_handler,
    BatchError: batch_error_handler,
    LLMConnectionError: llm_connection_error_handler,
    LLMTimeoutError: llm_timeout_error_handler,
    Exception: generic_error_handler,
}
