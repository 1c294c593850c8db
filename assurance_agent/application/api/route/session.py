from typing import Annotated
from fastapi import APIRouter, Depends

from assurance_agent.application.api.dependencies import ServiceContainer, get_services
from assurance_agent.application.api.schema.requests import (
    SessionInitRequest, SessionInitResponse, SessionListResponse, HistoryResponse
)
from assurance_agent.domain.errors import SessionNotFoundError

router = APIRouter(tags=["sessions"])


@router.post("/session/init", response_model=SessionInitResponse)
async def init_session(
    request: SessionInitRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    session = await services.session_store.create_session(request.user_id, request.metadata)
    return SessionInitResponse(
        session_id=session.id,
        session={
            "id": session.id,
            "created_at": session.created_at.isoformat(),
            "user_id": session.user_id
        }
    )


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(services: Annotated[ServiceContainer, Depends(get_services)]):
    sessions = await services.session_store.list_sessions()
    return SessionListResponse(
        sessions=[session.get_summary() for session in sessions],
        total=len(sessions)
    )


@router.get("/session/{session_id}/history", response_model=HistoryResponse)
async def get_history(session_id: str, services: Annotated[ServiceContainer, Depends(get_services)]):
    await services.session_store.require_session(session_id)
    history = await services.session_store.get_conversation_history(session_id)
    return HistoryResponse(session_id=session_id, history=history, total_messages=len(history))


@router.delete("/session/{session_id}")
async def delete_session(session_id: str, services: Annotated[ServiceContainer, Depends(get_services)]):
    if not await services.session_store.delete_session(session_id):
        raise SessionNotFoundError(session_id)
    return {"success": True, "session_id": session_id}
