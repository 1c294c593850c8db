from typing import Optional
from fastapi import Request
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
import structlog

from assurance_agent.domain.context.context_formatter import ContextFormatter
from assurance_agent.domain.context.context_retriever import ContextRetriever
from assurance_agent.domain.context.memory.knowledge_base import KnowledgeBase
from assurance_agent.domain.context.memory.session_store import InMemorySessionStore, SessionStore
from assurance_agent.domain.orchestration.core.chat_service import ChatService
from assurance_agent.domain.orchestration.core.chat_workflow import ChatWorkflow
from assurance_agent.infrastructure.config.settings import Settings
from assurance_agent.infrastructure.llm.providers import create_chat_model, create_embeddings
from assurance_agent.infrastructure.observability.langfuse_tracing import WorkflowTracer

logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Process-wide singletons shared by every request"""

    def __init__(
        self,
        settings: Settings,
        chat_model: Optional[BaseChatModel] = None,
        embeddings: Optional[Embeddings] = None
    ):
        self.settings = settings
        self.chat_model = chat_model or create_chat_model(settings.llm)
        self.embeddings = embeddings or create_embeddings(settings.llm)

        self.session_store: SessionStore = InMemorySessionStore(
            self.embeddings,
            embedding_batch_size=settings.ingestion.embedding_batch_size
        )
        self.knowledge_base = KnowledgeBase(
            self.embeddings,
            chunk_size=settings.ingestion.kb_chunk_size,
            chunk_overlap=settings.ingestion.kb_chunk_overlap
        )

        retriever = ContextRetriever(
            self.session_store,
            self.knowledge_base,
            debug_event_k=settings.retrieval.debug_event_k,
            default_event_k=settings.retrieval.default_event_k,
            doc_k=settings.retrieval.doc_search_k
        )
        self.workflow = ChatWorkflow.from_components(
            self.chat_model,
            retriever,
            ContextFormatter(settings.budget)
        )
        self.tracer = WorkflowTracer(settings.langfuse)
        self.chat_service = ChatService(self.session_store, self.workflow, self.tracer)

        logger.info(
            "Services initialized",
            model=settings.llm.model,
            tracing=self.tracer.enabled,
            total_budget=settings.budget.total_budget
        )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services
