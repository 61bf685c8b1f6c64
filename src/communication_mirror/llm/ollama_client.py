"""
Ollama model runtime.

Talks to the Ollama HTTP API with httpx.AsyncClient:
- POST /api/generate with `format` set to the shape's JSON Schema
  (constrained decoding) and the system prompt in `system`
- POST /api/show to verify the configured model during initialize()
- GET /api/tags for health checks

Execution lanes: the default lane rides on one persistent pooled client.
`open_lanes(n)` creates a dedicated client with one connection per lane,
closed when the batch scope exits, so concurrent batches never share
connections.
"""

import asyncio
import json
import time
from typing import Any, Dict, Optional

import httpx
import structlog

from communication_mirror.llm.base_client import ExecutionLane, ModelRuntime
from communication_mirror.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from communication_mirror.models.llm_models import (
    GenerationOptions,
    LLMGenerationRequest,
    LLMGenerationResponse,
)
from communication_mirror.monitoring.metrics import llm_latency_seconds, llm_tokens_total
from communication_mirror.schema.shapes import OutputShape

logger = structlog.get_logger(__name__)


class OllamaLane(ExecutionLane):
    """
    Lane backed by an httpx client.

    `client=None` means "use the runtime's shared client".
    """

    def __init__(
        self,
        runtime: "OllamaRuntime",
        name: str,
        context_size: int,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(name, context_size)
        self._runtime = runtime
        self._client = client

    async def _decode(self, prompt: str, shape: OutputShape, options: GenerationOptions) -> str:
        request = LLMGenerationRequest(
            prompt=prompt,
            model=self._runtime.model,
            system=self._runtime.system_prompt,
            temperature=options.temperature,
            max_tokens=options.max_tokens or self.context_size,
            context_size=self.context_size,
            format_schema=shape.decode_schema(),
        )
        client = self._client or await self._runtime._get_client()
        response = await self._runtime.generate(client, request, lane=self.name)
        return response.content


class OllamaRuntime(ModelRuntime):
    """
    Ollama-backed model runtime.

    Features:
    - Structured output via the format parameter (JSON Schema)
    - Persistent pooled client for the default lane
    - Per-batch clients for transient lane scopes
    - Connection-level retry with exponential backoff on network errors
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen2.5:7b",
        system_prompt: Optional[str] = None,
        timeout: int = 120,
        max_retries: int = 2,
        context_size: int = 4096,
        backoff_base: float = 2.0,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Ollama runtime.

        Args:
            base_url: Ollama server URL
            model: Model name to decode with
            system_prompt: System prompt sent with every decode
            timeout: Request timeout in seconds
            max_retries: Connection-level attempts for network errors
            context_size: Per-lane context window (num_ctx)
            backoff_base: Base of the exponential backoff between network retries
            connection_limits: Pool limits of the shared client
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        super().__init__(context_size=context_size)
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.system_prompt = system_prompt
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self._transport = transport
        self._connection_limits = connection_limits or httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._default_lane: Optional[OllamaLane] = None

        logger.info(
            "Ollama runtime created",
            base_url=self.base_url,
            model=model,
            timeout=timeout,
            max_retries=self.max_retries,
            context_size=context_size,
        )

    def _new_client(self, limits: httpx.Limits) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            limits=limits,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._new_client(self._connection_limits)
            logger.debug("Created new httpx AsyncClient")
        return self._client

    # --- ModelRuntime -------------------------------------------------

    async def _initialize(self) -> None:
        info = await self.get_model_info(self.model)
        logger.info(
            "Ollama model available",
            model=self.model,
            details=info.get("details"),
        )

    def default_lane(self) -> ExecutionLane:
        self.ensure_initialized()
        if self._default_lane is None:
            self._default_lane = OllamaLane(self, "default", self.context_size)
        return self._default_lane

    async def _acquire_lanes(self, count: int) -> list[ExecutionLane]:
        client = self._new_client(
            httpx.Limits(max_connections=count, max_keepalive_connections=count)
        )
        return [
            OllamaLane(self, f"batch-{index}", self.context_size, client=client)
            for index in range(count)
        ]

    async def _release_lanes(self, lanes: list[ExecutionLane]) -> None:
        clients = {
            id(lane._client): lane._client
            for lane in lanes
            if isinstance(lane, OllamaLane) and lane._client is not None
        }
        for client in clients.values():
            await client.aclose()

    def model_info(self) -> Dict[str, Any]:
        info = super().model_info()
        info.update({"model": self.model, "base_url": self.base_url})
        return info

    # --- Ollama API ---------------------------------------------------

    async def generate(
        self,
        client: httpx.AsyncClient,
        request: LLMGenerationRequest,
        lane: str = "default",
    ) -> LLMGenerationResponse:
        """
        POST /api/generate.

        Payload:
        {
            "model": "qwen2.5:7b",
            "prompt": "...",
            "system": "...",
            "stream": false,
            "format": <JSON Schema>,
            "options": {"temperature": 0.5, "num_predict": 4096, "num_ctx": 4096}
        }

        Raises:
            LLMTimeoutError: All attempts timed out
            LLMConnectionError: Server unreachable
            LLMModelNotAvailableError: 404 for the model
            LLMGenerationError: Other server errors or an unreadable payload
        """
        start_time = time.time()

        payload: Dict[str, Any] = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "format": request.format_schema or "json",
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
                "num_ctx": request.context_size,
            },
        }
        if request.system:
            payload["system"] = request.system

        logger.debug(
            "Sending generation request to Ollama",
            lane=lane,
            model=request.model,
            prompt_length=len(request.prompt),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                response_data = response.json()
                latency_ms = int((time.time() - start_time) * 1000)

                model_version = response_data.get("model", request.model)
                finish_reason = response_data.get("done_reason") or (
                    "stop" if response_data.get("done") else "incomplete"
                )
                prompt_tokens = response_data.get("prompt_eval_count")
                completion_tokens = response_data.get("eval_count")

                if finish_reason == "length":
                    logger.warning(
                        "Ollama stopped on token budget, output may be truncated",
                        lane=lane,
                        max_tokens=request.max_tokens,
                    )

                logger.info(
                    "Ollama generation successful",
                    lane=lane,
                    model=model_version,
                    latency_ms=latency_ms,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    finish_reason=finish_reason,
                    attempt=attempt,
                )

                llm_latency_seconds.labels(model=model_version, success="true").observe(
                    latency_ms / 1000.0
                )
                if prompt_tokens:
                    llm_tokens_total.labels(model=model_version, token_type="prompt").inc(
                        prompt_tokens
                    )
                if completion_tokens:
                    llm_tokens_total.labels(model=model_version, token_type="completion").inc(
                        completion_tokens
                    )

                return LLMGenerationResponse(
                    content=response_data.get("response", ""),
                    model_version=model_version,
                    finish_reason=finish_reason,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    latency_ms=latency_ms,
                    raw_metadata={
                        "total_duration": response_data.get("total_duration"),
                        "load_duration": response_data.get("load_duration"),
                        "eval_duration": response_data.get("eval_duration"),
                    },
                )

            except httpx.TimeoutException as e:
                logger.warning(
                    "Ollama request timeout",
                    lane=lane,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                last_error = LLMTimeoutError(
                    f"Request timeout after {self.timeout}s",
                    details={"attempt": attempt, "timeout": self.timeout},
                )

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                error_text = e.response.text
                logger.error(
                    "Ollama HTTP error",
                    lane=lane,
                    status_code=status_code,
                    error_text=error_text,
                    attempt=attempt,
                )
                if status_code == 404:
                    raise LLMModelNotAvailableError(
                        f"Model not found: {request.model}",
                        details={"model": request.model, "status": status_code},
                    ) from e
                if status_code < 500:
                    raise LLMGenerationError(
                        f"Ollama client error: {status_code}",
                        details={"status": status_code, "error": error_text},
                    ) from e
                last_error = LLMGenerationError(
                    f"Ollama server error: {status_code}",
                    details={"status": status_code, "error": error_text},
                )

            except httpx.TransportError as e:
                logger.warning(
                    "Ollama network error",
                    lane=lane,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                last_error = LLMConnectionError(
                    f"Network error: {e}",
                    details={"attempt": attempt, "error_type": type(e).__name__},
                )

            except json.JSONDecodeError as e:
                raise LLMGenerationError(
                    "Invalid JSON envelope from Ollama",
                    details={"parse_error": str(e)},
                ) from e

            llm_latency_seconds.labels(model=request.model, success="false").observe(
                time.time() - start_time
            )
            if attempt < self.max_retries:
                backoff = self.backoff_base ** attempt
                logger.info("Retrying Ollama request", lane=lane, backoff_seconds=backoff)
                await asyncio.sleep(backoff)

        if last_error:
            raise last_error
        raise LLMGenerationError("Generation failed after all retries")

    async def health_check(self) -> bool:
        """GET /api/tags. Returns False on any failure."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def get_model_info(self, model_name: str) -> Dict[str, Any]:
        """
        POST /api/show.

        Raises:
            LLMModelNotAvailableError: Model not found on server
            LLMConnectionError: Unable to reach server
        """
        try:
            client = await self._get_client()
            response = await client.post("/api/show", json={"model": model_name}, timeout=10.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise LLMModelNotAvailableError(
                    f"Model not found: {model_name}",
                    details={"model": model_name},
                ) from e
            raise LLMConnectionError(
                f"Failed to get model info: {e}",
                details={"model": model_name, "status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise LLMConnectionError(
                f"Error getting model info: {e}",
                details={"model": model_name},
            ) from e

    async def close(self) -> None:
        """Close the shared HTTP client."""
        await super().close()
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")
        self._default_lane = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"OllamaRuntime(base_url={self.base_url}, model={self.model}, timeout={self.timeout}s)"
