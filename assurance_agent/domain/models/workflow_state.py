"""
State threaded through the chat workflow graph.

Each node reads a subset of WorkflowState and returns one of the partial
update records below. LangGraph replaces scalar and list fields with the
returned value and merges `metadata` through `merge_metadata`, so nodes
never write each other's fields directly.
"""

from typing import TypedDict, Annotated, List, Dict, Any, Optional
from langchain_core.documents import Document

from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.models.session import ConversationMessage


def merge_metadata(current: Optional[Dict[str, Any]], update: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Reducer merging metadata updates key by key"""
    merged = dict(current or {})
    merged.update(update or {})
    return merged


class WorkflowState(TypedDict, total=False):
    """State for the chat workflow graph"""
    # Input
    session_id: str
    user_message: str
    conversation_history: List[ConversationMessage]

    # Analysis
    intent: Intent
    raw_events: List[Document]
    raw_docs: List[Document]
    error_events: List[Document]

    # Formatted context
    formatted_event_context: str
    formatted_knowledge_context: str
    formatted_history_context: str
    tokens_used: int

    # Output
    response: str
    metadata: Annotated[Dict[str, Any], merge_metadata]


class IntentUpdate(TypedDict):
    intent: Intent


class RetrievalUpdate(TypedDict):
    raw_events: List[Document]
    raw_docs: List[Document]
    metadata: Dict[str, Any]


class ErrorAnalysisUpdate(TypedDict):
    error_events: List[Document]
    metadata: Dict[str, Any]


class FormattingUpdate(TypedDict):
    formatted_event_context: str
    formatted_knowledge_context: str
    formatted_history_context: str
    tokens_used: int
    metadata: Dict[str, Any]


class ResponseUpdate(TypedDict):
    response: str
    metadata: Dict[str, Any]
