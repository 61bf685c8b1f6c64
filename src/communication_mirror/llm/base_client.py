"""
Abstract model runtime and execution lanes.

The model is an opaque capability: given a prompt and an output-shape
constraint, produce text. A runtime owns the loaded model; an execution
lane is an isolated decode sequence on top of it. Lanes let several
generations run concurrently without sharing decode state.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import structlog

from communication_mirror.llm.exceptions import NotInitializedError
from communication_mirror.models.llm_models import GenerationOptions
from communication_mirror.schema.shapes import OutputShape

logger = structlog.get_logger(__name__)


class ExecutionLane(ABC):
    """
    One isolated decode sequence.

    A lane runs at most one decode at a time; concurrent callers queue on
    the lane's lock. `context_size` is the lane's token budget and the
    default `max_tokens` for generations on it.
    """

    def __init__(self, name: str, context_size: int):
        self.name = name
        self.context_size = context_size
        self._lock = asyncio.Lock()

    async def decode(self, prompt: str, shape: OutputShape, options: GenerationOptions) -> str:
        """
        Decode `prompt` under the shape's decode-time constraint.

        Args:
            prompt: Fully built prompt
            shape: Output shape used as decode constraint
            options: Temperature and token budget

        Returns:
            Raw generated text

        Raises:
            LLMClientError: Transport or server failure
        """
        async with self._lock:
            return await self._decode(prompt, shape, options)

    @abstractmethod
    async def _decode(self, prompt: str, shape: OutputShape, options: GenerationOptions) -> str:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, context_size={self.context_size})"


class ModelRuntime(ABC):
    """
    Abstract base class for model runtimes.

    Responsibilities:
    - Load / verify the model (`initialize`)
    - Provide a long-lived default lane for single-kind calls
    - Provide transient lane scopes for batched calls (`open_lanes`)

    Does NOT handle:
    - Prompt construction (PromptBuilder)
    - Output validation (ConstrainedGenerator)
    - Corrective retries (RetryEngine)
    """

    def __init__(self, context_size: int = 4096):
        self.context_size = context_size
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self) -> None:
        """
        Raises:
            NotInitializedError: If initialize() has not completed
        """
        if not self._initialized:
            raise NotInitializedError()

    async def initialize(self) -> None:
        """Load or verify the model. Idempotent."""
        if self._initialized:
            return
        await self._initialize()
        self._initialized = True
        logger.info("Model runtime initialized", runtime=self.__class__.__name__)

    @abstractmethod
    async def _initialize(self) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability check. Must not raise.
        """

    @abstractmethod
    def default_lane(self) -> ExecutionLane:
        """Shared lane for single-kind generations."""

    @abstractmethod
    async def _acquire_lanes(self, count: int) -> list[ExecutionLane]:
        ...

    @abstractmethod
    async def _release_lanes(self, lanes: list[ExecutionLane]) -> None:
        ...

    @asynccontextmanager
    async def open_lanes(self, count: int) -> AsyncIterator[list[ExecutionLane]]:
        """
        Transient scope of `count` dedicated lanes.

        Lanes are released when the scope exits, on success and on failure.

        Raises:
            NotInitializedError: If the runtime is not initialized
        """
        self.ensure_initialized()
        lanes = await self._acquire_lanes(count)
        logger.debug("Execution lanes acquired", count=count)
        try:
            yield lanes
        finally:
            await self._release_lanes(lanes)
            logger.debug("Execution lanes released", count=count)

    def model_info(self) -> Dict[str, Any]:
        """Static description for status endpoints."""
        return {"runtime": self.__class__.__name__, "context_size": self.context_size}

    async def close(self) -> None:
        """Release runtime resources. Default implementation does nothing."""
        self._initialized = False
        logger.debug("Closing model runtime", runtime=self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(context_size={self.context_size})"
