from typing import Annotated
from datetime import datetime
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from assurance_agent.application.api.dependencies import ServiceContainer, get_services
from assurance_agent.infrastructure.observability.logging import metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(services: Annotated[ServiceContainer, Depends(get_services)]):
    """Ping the chat model and report service status"""

    try:
        await services.chat_model.ainvoke("test")
    except Exception as e:
        logger.warning("Health check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "llm": "disconnected",
                "error": str(e)
            }
        )

    return {
        "status": "healthy",
        "llm": "connected",
        "model": services.settings.llm.model,
        "active_sessions": await services.session_store.count(),
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/metrics")
async def get_metrics():
    """In-process latency and counter summary"""
    return metrics.get_metrics_summary()
