from typing import Dict, Any, Optional
from langgraph.graph import StateGraph, START, END
from langchain_core.language_models import BaseChatModel
import structlog

from assurance_agent.domain.context.context_formatter import ContextFormatter
from assurance_agent.domain.context.context_retriever import ContextRetriever
from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.models.workflow_state import WorkflowState
from assurance_agent.domain.orchestration.nodes.error_analysis import analyze_errors
from assurance_agent.domain.orchestration.nodes.intent_classifier import IntentClassifier
from assurance_agent.domain.orchestration.nodes.response_generator import ResponseGenerator
from assurance_agent.infrastructure.observability.logging import workflow_logger

logger = structlog.get_logger(__name__)

CLASSIFY_INTENT = "classify_intent"
RETRIEVE_CONTEXTS = "retrieve_contexts"
ANALYZE_ERRORS = "analyze_errors"
FORMAT_CONTEXTS = "format_contexts"
GENERATE_RESPONSE = "generate_response"

# Node that follows retrieval for each intent
POST_RETRIEVAL_TRANSITIONS: Dict[Intent, str] = {
    Intent.DEBUG: ANALYZE_ERRORS,
    Intent.ANALYTICS: FORMAT_CONTEXTS,
    Intent.GENERAL: FORMAT_CONTEXTS,
}

_unmapped = set(Intent) - set(POST_RETRIEVAL_TRANSITIONS)
if _unmapped:
    raise RuntimeError(f"No post-retrieval transition for intents: {sorted(i.value for i in _unmapped)}")


class ChatWorkflow:
    """Chat pipeline as a LangGraph state machine

    classify_intent -> retrieve_contexts -> [analyze_errors] -> format_contexts
    -> generate_response. The workflow holds no per-invocation state, so
    concurrent invocations for different sessions are independent.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        retriever: ContextRetriever,
        formatter: ContextFormatter,
        generator: ResponseGenerator
    ):
        self.classifier = classifier
        self.retriever = retriever
        self.formatter = formatter
        self.generator = generator
        self.graph = self._create_workflow()

    @classmethod
    def from_components(
        cls,
        llm: BaseChatModel,
        retriever: ContextRetriever,
        formatter: Optional[ContextFormatter] = None
    ) -> "ChatWorkflow":
        """Build the workflow with one model for classification and generation"""
        return cls(
            classifier=IntentClassifier(llm),
            retriever=retriever,
            formatter=formatter or ContextFormatter(),
            generator=ResponseGenerator(llm)
        )

    def _create_workflow(self):
        """Create the chat workflow graph"""

        workflow = StateGraph(WorkflowState)

        workflow.add_node(CLASSIFY_INTENT, self.classifier)
        workflow.add_node(RETRIEVE_CONTEXTS, self.retriever)
        workflow.add_node(ANALYZE_ERRORS, analyze_errors)
        workflow.add_node(FORMAT_CONTEXTS, self.formatter)
        workflow.add_node(GENERATE_RESPONSE, self.generator)

        workflow.add_edge(START, CLASSIFY_INTENT)
        workflow.add_edge(CLASSIFY_INTENT, RETRIEVE_CONTEXTS)

        # Debug intent gets an error analysis pass before formatting
        workflow.add_conditional_edges(
            RETRIEVE_CONTEXTS,
            self.route_after_retrieval,
            {node: node for node in set(POST_RETRIEVAL_TRANSITIONS.values())}
        )
        workflow.add_edge(ANALYZE_ERRORS, FORMAT_CONTEXTS)
        workflow.add_edge(FORMAT_CONTEXTS, GENERATE_RESPONSE)
        workflow.add_edge(GENERATE_RESPONSE, END)

        return workflow.compile()

    def route_after_retrieval(self, state: WorkflowState) -> str:
        """Pick the node after retrieval from the intent transition table"""

        intent = Intent.parse(state.get("intent"))
        next_node = POST_RETRIEVAL_TRANSITIONS[intent]

        workflow_logger.log_intent_route(
            session_id=state.get("session_id", ""),
            intent=intent.value,
            next_node=next_node,
            events_retrieved=len(state.get("raw_events") or []),
            docs_retrieved=len(state.get("raw_docs") or [])
        )
        return next_node

    async def invoke(self, initial_state: WorkflowState, config: Optional[Dict[str, Any]] = None) -> WorkflowState:
        """Run one chat turn through the graph and return the final state"""

        logger.debug("Invoking chat workflow", session_id=initial_state.get("session_id"))
        return await self.graph.ainvoke(initial_state, config=config)
