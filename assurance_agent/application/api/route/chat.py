from typing import Annotated
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
import structlog

from assurance_agent.application.api.dependencies import ServiceContainer, get_services
from assurance_agent.application.api.schema.requests import ChatRequest, ChatResponse
from assurance_agent.domain.errors import SessionNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    """Run one chat turn through the workflow"""

    if not request.message.strip():
        raise HTTPException(status_code=400, detail="message is required")

    try:
        result = await services.chat_service.chat(request.session_id, request.message)
    except SessionNotFoundError:
        raise
    except Exception as e:
        logger.error("Chat turn failed", session_id=request.session_id, error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return ChatResponse(
        response=result["response"],
        session_id=request.session_id,
        timestamp=datetime.utcnow().isoformat(),
        context=result["metadata"]
    )
