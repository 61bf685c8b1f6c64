"""
Model runtime abstraction, constrained generation and prompts.

Components:
- ModelRuntime / ExecutionLane: Abstract runtime and isolated decode lanes
- OllamaRuntime: Implementation for the Ollama inference server
- ConstrainedGenerator: One decode, parsed, validated and truncation-checked
- PromptBuilder: Per-kind and corrective retry prompts (Jinja2)
- ModelLoader: Background runtime initialisation
- exceptions: Runtime-level exceptions
"""

from communication_mirror.llm.base_client import ExecutionLane, ModelRuntime
from communication_mirror.llm.corrections import CorrectionTopic, select_correction
from communication_mirror.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
    NotInitializedError,
)
from communication_mirror.llm.generator import ConstrainedGenerator
from communication_mirror.llm.model_loader import ModelLoader
from communication_mirror.llm.ollama_client import OllamaLane, OllamaRuntime
from communication_mirror.llm.prompt_builder import PromptBuilder

__all__ = [
    "ExecutionLane",
    "ModelRuntime",
    "OllamaLane",
    "OllamaRuntime",
    "ConstrainedGenerator",
    "PromptBuilder",
    "ModelLoader",
    "CorrectionTopic",
    "select_correction",
    "LLMClientError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMModelNotAvailableError",
    "LLMTimeoutError",
    "NotInitializedError",
]
