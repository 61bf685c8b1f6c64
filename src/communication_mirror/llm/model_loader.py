"""
Background model loading.

The HTTP app starts answering immediately; the model runtime is initialised
in a background task and the status endpoint reports its progress.
"""

import asyncio
from typing import Awaitable, Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)


class Initializable(Protocol):
    def initialize(self) -> Awaitable[None]:
        ...


class ModelLoader:
    """
    Runs `target.initialize()` once in the background.

    States: idle -> loading -> ready | error.
    """

    def __init__(self, target: Initializable):
        self.target = target
        self._task: Optional[asyncio.Task] = None
        self._ready = False
        self._error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def loading(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def error(self) -> Optional[str]:
        return self._error

    def start(self) -> asyncio.Task:
        """Schedule loading on the running loop. Calling again returns the same task."""
        if self._task is None:
            self._task = asyncio.create_task(self._load(), name="model-loader")
        return self._task

    async def _load(self) -> None:
        logger.info("Model loading started")
        try:
            await self.target.initialize()
        except Exception as e:
            self._error = str(e)
            logger.error("Model loading failed", error=str(e), error_type=type(e).__name__)
            return
        self._ready = True
        logger.info("Model loading complete")

    async def wait(self) -> bool:
        """Wait for the load to finish. Returns `ready`."""
        if self._task is not None:
            await self._task
        return self._ready

    async def stop(self) -> None:
        """Cancel an in-flight load."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        logger.info("Model loading cancelled")
