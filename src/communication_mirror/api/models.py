"""
API-specific request and response models for FastAPI endpoints.

Wire names are camelCase (`sessionId`, `createdAt`); Python attributes are
snake_case. Responses are serialized by alias.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from communication_mirror.models.analysis_models import (
    Alternative,
    AnalysisBundle,
    ImpactResult,
    IntentResult,
    ToneResult,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnalyzeRequest(ApiModel):
    """Request body for every analysis endpoint."""

    message: str = Field(
        description="Message to analyze",
        examples=["Can you finally send the document today?"],
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Existing session id; a new session is created when absent or unknown",
    )

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class AnalyzeResponse(ApiModel):
    """Response for the batched analysis endpoint."""

    success: bool = True
    data: AnalysisBundle
    session_id: str = Field(alias="sessionId")


class SingleAnalysisResponse(ApiModel):
    """Response for a single-kind analysis endpoint."""

    success: bool = True
    data: Union[IntentResult, ToneResult, ImpactResult, list[Alternative]]
    session_id: str = Field(alias="sessionId")


class SessionCreatedResponse(ApiModel):
    success: bool = True
    session_id: str = Field(alias="sessionId")
    created_at: datetime = Field(alias="createdAt")


class SessionInfoResponse(ApiModel):
    success: bool = True
    session_id: str = Field(alias="sessionId")
    created_at: datetime = Field(alias="createdAt")
    last_accessed_at: datetime = Field(alias="lastAccessedAt")
    interaction_count: int = Field(alias="interactionCount", ge=0)


class SessionDeletedResponse(ApiModel):
    success: bool = True
    message: str = "Session deleted successfully"


class InteractionSummary(ApiModel):
    message: str
    timestamp: datetime


class ContextResponse(ApiModel):
    """Retained interactions of a session and the context block built from them."""

    session_id: str = Field(alias="sessionId")
    created_at: datetime = Field(alias="createdAt")
    last_accessed_at: datetime = Field(alias="lastAccessedAt")
    interactions: list[InteractionSummary]
    context: Optional[str] = Field(
        default=None,
        description="Prompt-ready context block (null when there are no interactions)",
    )


class StatusResponse(ApiModel):
    """Model readiness for the UI."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_ready: bool = Field(alias="modelReady")
    model_loading: bool = Field(alias="modelLoading")
    model: dict[str, Any] = Field(description="Runtime description")
    error: Optional[str] = None
    sessions: dict[str, int] = Field(default_factory=dict)


class HealthResponse(ApiModel):
    status: str = Field(examples=["ok"])
    service: str = "communication-mirror"
    version: str
    timestamp: datetime = Field(default_factory=_utc_now)


class ErrorResponse(ApiModel):
    """Standard error response format."""

    error: str = Field(
        description="Error code",
        examples=["invalid_request", "model_not_ready", "session_not_found"],
    )
    message: str = Field(description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utc_now)
