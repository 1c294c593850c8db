from typing import Annotated
from fastapi import APIRouter, Depends
import structlog

from assurance_agent.application.api.dependencies import ServiceContainer, get_services
from assurance_agent.application.api.schema.requests import (
    EventUploadRequest, EventUploadResponse, EventSearchRequest, EventSearchResponse, SearchResult
)
from assurance_agent.domain.errors import EventUploadLimitError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/upload", response_model=EventUploadResponse)
async def upload_events(
    request: EventUploadRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    """Add Assurance events to a session, skipping ones already stored"""

    limit = services.settings.ingestion.max_events_per_request
    if len(request.events) > limit:
        raise EventUploadLimitError(len(request.events), limit)

    result = await services.session_store.add_events(request.session_id, request.events)

    logger.info(
        "Uploaded events",
        session_id=request.session_id,
        added=result.added,
        duplicates=result.duplicates
    )

    return EventUploadResponse(
        message=f"{result.added} events uploaded, {result.duplicates} duplicates skipped",
        session_id=request.session_id,
        processed=result.processed,
        added=result.added,
        duplicates=result.duplicates,
        total_events=result.total_events_in_session
    )


@router.post("/search", response_model=EventSearchResponse)
async def search_events(
    request: EventSearchRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    """Semantic search over one session's events"""

    event_store = await services.session_store.get_event_vector_store(request.session_id)
    docs = await event_store.search(request.query, k=request.limit, filters=request.filters)

    return EventSearchResponse(
        session_id=request.session_id,
        query=request.query,
        results=[SearchResult(content=doc.page_content, metadata=doc.metadata) for doc in docs],
        total_results=len(docs)
    )


@router.get("/{session_id}")
async def get_events(session_id: str, services: Annotated[ServiceContainer, Depends(get_services)]):
    """Raw events of a session in upload order"""

    session = await services.session_store.require_session(session_id)
    return {
        "success": True,
        "session_id": session_id,
        "events": session.events,
        "total_events": len(session.events)
    }


@router.get("/{session_id}/stats")
async def get_event_stats(session_id: str, services: Annotated[ServiceContainer, Depends(get_services)]):
    event_store = await services.session_store.get_event_vector_store(session_id)
    return {"success": True, "session_id": session_id, "stats": event_store.stats()}
