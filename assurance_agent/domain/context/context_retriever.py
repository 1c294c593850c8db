from typing import List, Optional
import asyncio
import re
import structlog
from langchain_core.documents import Document

from assurance_agent.domain.context.memory.knowledge_base import KnowledgeBase
from assurance_agent.domain.context.memory.session_store import SessionStore
from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.models.workflow_state import WorkflowState, RetrievalUpdate
from assurance_agent.infrastructure.observability.logging import metrics

logger = structlog.get_logger(__name__)

# Lexical cues of an explanatory question; a cheap gate, not a classifier
DOC_QUESTION_CUES = re.compile(r"\b(how|what is|what are|what does|explain)\b", re.IGNORECASE)


def needs_documentation(intent: Intent, user_message: str) -> bool:
    """Whether documentation context is worth retrieving for a message"""
    return intent == Intent.GENERAL or bool(DOC_QUESTION_CUES.search(user_message or ""))


class ContextRetriever:
    """Retrieves session events and knowledge base documents concurrently"""

    def __init__(
        self,
        session_store: SessionStore,
        knowledge_base: Optional[KnowledgeBase],
        debug_event_k: int = 15,
        default_event_k: int = 5,
        doc_k: int = 3
    ):
        self.session_store = session_store
        self.knowledge_base = knowledge_base
        self.debug_event_k = debug_event_k
        self.default_event_k = default_event_k
        self.doc_k = doc_k

    def event_k_for(self, intent: Intent) -> int:
        """Debugging needs broader evidence than other intents"""
        return self.debug_event_k if intent == Intent.DEBUG else self.default_event_k

    async def retrieve(self, session_id: str, user_message: str, intent: Intent) -> RetrievalUpdate:
        """Run both searches in parallel; a failed source contributes nothing"""

        with metrics.timed("retrieve_contexts"):
            raw_events, raw_docs = await asyncio.gather(
                self._retrieve_events(session_id, user_message, intent),
                self._retrieve_docs(user_message, intent)
            )

        logger.info(
            "Retrieved contexts",
            session_id=session_id,
            intent=intent.value,
            events=len(raw_events),
            docs=len(raw_docs)
        )

        return {
            "raw_events": raw_events,
            "raw_docs": raw_docs,
            "metadata": {
                "events_retrieved": len(raw_events),
                "docs_retrieved": len(raw_docs)
            }
        }

    async def _retrieve_events(self, session_id: str, user_message: str, intent: Intent) -> List[Document]:
        try:
            event_store = await self.session_store.get_event_vector_store(session_id)
            return await event_store.search(user_message, k=self.event_k_for(intent))
        except Exception as e:
            metrics.increment_counter("retrieval_failures", tags={"source": "events"})
            logger.warning("Event retrieval failed", session_id=session_id, error=str(e))
            return []

    async def _retrieve_docs(self, user_message: str, intent: Intent) -> List[Document]:
        if self.knowledge_base is None or not needs_documentation(intent, user_message):
            return []

        try:
            return await self.knowledge_base.search(user_message, k=self.doc_k)
        except Exception as e:
            metrics.increment_counter("retrieval_failures", tags={"source": "knowledge_base"})
            logger.warning("Knowledge base retrieval failed", error=str(e))
            return []

    async def __call__(self, state: WorkflowState) -> RetrievalUpdate:
        """Workflow node: retrieve candidate events and documents"""
        return await self.retrieve(
            state["session_id"],
            state.get("user_message", ""),
            Intent.parse(state.get("intent"))
        )
