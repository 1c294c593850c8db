from typing import Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
import structlog

from assurance_agent.application.api.dependencies import ServiceContainer
from assurance_agent.application.api.route import chat, events, health, knowledge, session
from assurance_agent.domain.errors import (
    SessionNotFoundError, EventUploadLimitError, UnsupportedDocumentError, DocumentFetchError
)
from assurance_agent.infrastructure.config.settings import Settings
from assurance_agent.infrastructure.loaders.document_loader import load_directory
from assurance_agent.infrastructure.observability.logging import setup_logging

logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app(
    settings: Optional[Settings] = None,
    chat_model: Optional[BaseChatModel] = None,
    embeddings: Optional[Embeddings] = None
) -> FastAPI:
    """Build the HTTP application around one set of service singletons"""

    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_format, settings.service_name, settings.environment)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services: ServiceContainer = app.state.services

        # Load the bundled knowledge base directory, if configured
        kb_dir = settings.knowledge_base_dir
        if kb_dir:
            for document in load_directory(kb_dir):
                await services.knowledge_base.add_document(**document)
            logger.info("Knowledge base loaded", path=kb_dir, **services.knowledge_base.get_stats())

        logger.info("Assurance agent started", environment=settings.environment, port=settings.port)
        yield

        services.tracer.flush()
        logger.info("Assurance agent stopped")

    app = FastAPI(title="Assurance Debugging Assistant", version="1.0.0", lifespan=lifespan)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = ServiceContainer(settings, chat_model=chat_model, embeddings=embeddings)

    for module in (health, session, chat, events, knowledge):
        app.include_router(module.router, prefix="/api")

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return _error(404, "Session not found. Please initialize a session first.")

    @app.exception_handler(EventUploadLimitError)
    async def upload_limit_handler(request: Request, exc: EventUploadLimitError):
        return _error(413, str(exc))

    @app.exception_handler(UnsupportedDocumentError)
    async def unsupported_document_handler(request: Request, exc: UnsupportedDocumentError):
        return _error(400, str(exc))

    @app.exception_handler(DocumentFetchError)
    async def document_fetch_handler(request: Request, exc: DocumentFetchError):
        return _error(502, str(exc))

    return app
