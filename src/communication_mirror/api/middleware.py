"""Request tracing middleware.

Every request gets a request id (the caller's X-Request-ID or a fresh
UUID4) bound to the structlog context together with the session id when
the path names one. The id is echoed on the response.
"""

import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by the UI while the model loads; logged at debug only
QUIET_PATHS = frozenset({"/health", "/api/status"})

SESSION_PATH_PREFIXES = ("/api/sessions/", "/api/context/")


def session_id_from_path(path: str) -> Optional[str]:
    for prefix in SESSION_PATH_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix):].strip("/") or None
    return None


class RequestTracingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        path = request.url.path

        context = {"request_id": request_id, "method": request.method, "path": path}
        session_id = session_id_from_path(path)
        if session_id:
            context["session_id"] = session_id
        structlog.contextvars.bind_contextvars(**context)

        log = logger.debug if path in QUIET_PATHS else logger.info
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                exc_info=exc,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        else:
            log(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()
