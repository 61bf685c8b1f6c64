"""
Status and health routes.
"""

from fastapi import APIRouter, Depends

from communication_mirror.analysis.service import AnalysisService
from communication_mirror.api.dependencies import (
    get_analysis_service,
    get_model_loader,
    get_session_store,
    get_settings,
)
from communication_mirror.api.models import HealthResponse, StatusResponse
from communication_mirror.config import Settings
from communication_mirror.llm.model_loader import ModelLoader
from communication_mirror.sessions.store import SessionStore

router = APIRouter(tags=["status"])


@router.get("/api/status", response_model=StatusResponse)
async def get_status(
    service: AnalysisService = Depends(get_analysis_service),
    loader: ModelLoader = Depends(get_model_loader),
    store: SessionStore = Depends(get_session_store),
) -> StatusResponse:
    """Model readiness and session counts."""
    return StatusResponse(
        model_ready=service.initialized,
        model_loading=loader.loading,
        model=service.runtime.model_info(),
        error=loader.error,
        sessions=store.get_stats(),
    )


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Liveness probe. Does not depend on the model being loaded."""
    return HealthResponse(status="ok", version=settings.APP_VERSION)
