"""
Session routes: create, inspect, delete, and view formatted context.
"""

from fastapi import APIRouter, Depends, status

from communication_mirror.api.dependencies import get_session_store
from communication_mirror.api.exceptions import SessionNotFoundError
from communication_mirror.api.models import (
    ContextResponse,
    ErrorResponse,
    InteractionSummary,
    SessionCreatedResponse,
    SessionDeletedResponse,
    SessionInfoResponse,
)
from communication_mirror.sessions.store import SessionStore

router = APIRouter(
    prefix="/api",
    tags=["sessions"],
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)


@router.post(
    "/sessions",
    response_model=SessionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(store: SessionStore = Depends(get_session_store)) -> SessionCreatedResponse:
    session = store.create_session()
    return SessionCreatedResponse(session_id=session.id, created_at=session.created_at)


@router.get("/sessions/{session_id}", response_model=SessionInfoResponse)
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionInfoResponse:
    session = store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return SessionInfoResponse(
        session_id=session.id,
        created_at=session.created_at,
        last_accessed_at=session.last_accessed_at,
        interaction_count=session.interaction_count,
    )


@router.delete("/sessions/{session_id}", response_model=SessionDeletedResponse)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionDeletedResponse:
    if not store.delete_session(session_id):
        raise SessionNotFoundError(session_id)
    return SessionDeletedResponse()


@router.get("/context/{session_id}", response_model=ContextResponse)
async def get_context(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> ContextResponse:
    """Retained interactions of a session and the context block the prompts receive."""
    session = store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return ContextResponse(
        session_id=session.id,
        created_at=session.created_at,
        last_accessed_at=session.last_accessed_at,
        interactions=[
            InteractionSummary(message=interaction.message, timestamp=interaction.timestamp)
            for interaction in session.interactions
        ],
        context=store.format_context(session_id),
    )
