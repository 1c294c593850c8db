from typing import Dict, Any, Optional
import structlog

from assurance_agent.domain.context.memory.session_store import SessionStore
from assurance_agent.domain.models.session import MessageRole
from assurance_agent.domain.models.workflow_state import WorkflowState
from assurance_agent.domain.orchestration.core.chat_workflow import ChatWorkflow
from assurance_agent.infrastructure.observability.langfuse_tracing import WorkflowTracer
from assurance_agent.infrastructure.observability.logging import metrics

logger = structlog.get_logger(__name__)


class ChatService:
    """Runs chat turns through the workflow and records them in the session"""

    def __init__(
        self,
        session_store: SessionStore,
        workflow: ChatWorkflow,
        tracer: Optional[WorkflowTracer] = None
    ):
        self.session_store = session_store
        self.workflow = workflow
        self.tracer = tracer

    async def chat(self, session_id: str, message: str) -> Dict[str, Any]:
        """Answer a message in the context of a session

        Raises SessionNotFoundError before any work is done when the session
        does not exist. If the workflow raises, nothing is added to history.
        """

        await self.session_store.require_session(session_id)
        history = await self.session_store.get_conversation_history(session_id)

        initial_state: WorkflowState = {
            "session_id": session_id,
            "user_message": message,
            "conversation_history": history,
            "metadata": {}
        }
        config = self.tracer.build_run_config(session_id) if self.tracer else None

        logger.info("Processing chat message", session_id=session_id, message=message[:80])
        with structlog.contextvars.bound_contextvars(session_id=session_id), metrics.timed("chat_turn"):
            result = await self.workflow.invoke(initial_state, config=config)

        metrics.increment_counter("chat_turns")

        response = result["response"]
        await self.session_store.add_message(session_id, MessageRole.USER, message)
        await self.session_store.add_message(session_id, MessageRole.ASSISTANT, response)

        intent = result.get("intent")
        event_context = result.get("formatted_event_context") or ""
        knowledge_context = result.get("formatted_knowledge_context") or ""

        metadata = dict(result.get("metadata") or {})
        metadata.update({
            "intent": intent.value if intent is not None else None,
            "event_context_used": len(event_context) > 0,
            "knowledge_base_used": len(knowledge_context) > 0,
            "tokens_used": result.get("tokens_used", 0),
            "error_count": metadata.get("error_count", 0)
        })

        logger.info(
            "Response generated",
            session_id=session_id,
            intent=metadata["intent"],
            tokens_used=metadata["tokens_used"]
        )

        return {
            "response": response,
            "metadata": metadata,
            "formatted_event_context": event_context,
            "formatted_knowledge_context": knowledge_context
        }
