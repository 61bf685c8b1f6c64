"""
LLM-specific data models for the request/response cycle.

Internal to the model runtime layer: they describe one decode call and what
came back, independent of which analysis kind asked for it.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationOptions(BaseModel):
    """
    Sampling options for one logical generation.

    `max_tokens=None` means "use the execution lane's context budget".
    """

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1)


class LLMGenerationRequest(BaseModel):
    """Provider-neutral description of a single decode call."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Fully built user prompt")
    model: str = Field(..., description="Model name/identifier (e.g., 'qwen2.5:7b')")
    system: Optional[str] = Field(default=None, description="System prompt")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1)
    context_size: int = Field(default=4096, ge=1, description="Lane context window")
    format_schema: Optional[Dict[str, Any]] = Field(
        default=None,
        description="JSON Schema constraining the decode (Ollama format parameter)",
    )


class LLMGenerationResponse(BaseModel):
    """Raw decode output plus metadata for logs and metrics."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text (expected to be JSON)")
    model_version: str
    finish_reason: str = Field(..., description="'stop', 'length', ...")
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    latency_ms: int = Field(..., ge=0)
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)
