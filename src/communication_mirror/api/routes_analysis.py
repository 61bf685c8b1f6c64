"""
Analysis routes.

POST /api/analyze runs all four analyses as one batch and records the turn
in the session. POST /api/analyze/{kind} runs one analysis with the same
session context but does not record a turn.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, status

from communication_mirror.analysis.service import AnalysisService
from communication_mirror.api.dependencies import (
    get_analysis_service,
    get_session_store,
    require_model_ready,
    validated_analyze_request,
)
from communication_mirror.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    SingleAnalysisResponse,
)
from communication_mirror.models.enums import AnalysisKind
from communication_mirror.sessions.store import SessionStore

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["analysis"],
    dependencies=[Depends(require_model_ready)],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        503: {"model": ErrorResponse, "description": "Model not ready or analysis failed"},
    },
)


def resolve_session(store: SessionStore, provided_id: Optional[str]) -> tuple[str, Optional[str]]:
    """
    Session id to use for this request and its formatted context.

    A new session is created when no id is given or the id is unknown.
    """
    if provided_id and store.get_session(provided_id) is not None:
        session_id = provided_id
        logger.debug("Using existing session", session_id=session_id)
    else:
        session_id = store.create_session().id
        if provided_id:
            logger.info("Session not found, created new one", requested=provided_id, session_id=session_id)

    return session_id, store.format_context(session_id)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    status_code=status.HTTP_200_OK,
    summary="Analyze a message (intent, tone, impact, alternatives)",
)
async def analyze(
    body: AnalyzeRequest = Depends(validated_analyze_request),
    service: AnalysisService = Depends(get_analysis_service),
    store: SessionStore = Depends(get_session_store),
) -> AnalyzeResponse:
    session_id, context = resolve_session(store, body.session_id)

    logger.info(
        "Analysis request received",
        session_id=session_id,
        message_length=len(body.message),
        has_context=context is not None,
    )

    bundle = await service.analyze_batched(body.message, context, session_id)
    if not store.add_interaction(session_id, body.message, bundle):
        logger.warning(
            "Session ended during analysis, interaction not recorded",
            session_id=session_id,
        )

    return AnalyzeResponse(success=True, data=bundle, session_id=session_id)


@router.post(
    "/analyze/{kind}",
    response_model=SingleAnalysisResponse,
    status_code=status.HTTP_200_OK,
    summary="Run a single analysis kind",
)
async def analyze_single(
    kind: AnalysisKind,
    body: AnalyzeRequest = Depends(validated_analyze_request),
    service: AnalysisService = Depends(get_analysis_service),
    store: SessionStore = Depends(get_session_store),
) -> SingleAnalysisResponse:
    session_id, context = resolve_session(store, body.session_id)

    logger.info("Single analysis request received", kind=kind.value, session_id=session_id)

    result = await service.analyze_kind(kind, body.message, context, session_id)
    return SingleAnalysisResponse(success=True, data=result, session_id=session_id)
