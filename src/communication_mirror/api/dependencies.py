"""
FastAPI dependency injection.

Every long-lived component is built once by the composition root
(`main.create_app`) and stored on `app.state`; dependencies only look
them up. There are no module-level singletons.
"""

from fastapi import Depends, Request

from communication_mirror.analysis.service import AnalysisService
from communication_mirror.api.exceptions import InvalidRequestError
from communication_mirror.api.models import AnalyzeRequest
from communication_mirror.config import Settings
from communication_mirror.llm.exceptions import NotInitializedError
from communication_mirror.llm.model_loader import ModelLoader
from communication_mirror.sessions.store import SessionStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_model_loader(request: Request) -> ModelLoader:
    return request.app.state.model_loader


def require_model_ready(
    service: AnalysisService = Depends(get_analysis_service),
    loader: ModelLoader = Depends(get_model_loader),
) -> None:
    """
    Reject analysis requests until the model runtime is initialized.

    Raises:
        NotInitializedError: Model still loading, failed, or never started
    """
    if service.initialized:
        return
    if loader.loading:
        raise NotInitializedError("Model is still loading. Please try again in a moment.")
    if loader.error:
        raise NotInitializedError(f"Model failed to load: {loader.error}")
    raise NotInitializedError("Model is not available.")


def validated_analyze_request(
    body: AnalyzeRequest,
    settings: Settings = Depends(get_settings),
) -> AnalyzeRequest:
    """
    Body of an analysis request with the configured length limit applied.

    Raises:
        InvalidRequestError: Message longer than MAX_MESSAGE_LENGTH
    """
    if len(body.message) > settings.MAX_MESSAGE_LENGTH:
        raise InvalidRequestError(
            "message_too_long",
            f"Message exceeds maximum length of {settings.MAX_MESSAGE_LENGTH} characters",
        )
    return body
