from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field

from assurance_agent.domain.context.memory.knowledge_base import KnowledgeDocument
from assurance_agent.domain.models.session import ConversationMessage


# Sessions

class SessionInitRequest(BaseModel):
    """Body of POST /api/session/init"""
    user_id: Optional[str] = Field(default=None, description="Caller supplied user id, anonymous if unset")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="App version, platform, ...")


class SessionInitResponse(BaseModel):
    success: bool = True
    session_id: str
    message: str = "Session initialized successfully"
    session: Dict[str, Any]


class SessionListResponse(BaseModel):
    success: bool = True
    sessions: List[Dict[str, Any]]
    total: int


class HistoryResponse(BaseModel):
    success: bool = True
    session_id: str
    history: List[ConversationMessage]
    total_messages: int


# Chat

class ChatRequest(BaseModel):
    """Body of POST /api/chat"""
    session_id: str = Field(description="Session to chat in")
    message: str = Field(description="User message")


class ChatResponse(BaseModel):
    success: bool = True
    response: str
    session_id: str
    timestamp: str
    context: Dict[str, Any] = Field(description="Intent, budget and retrieval details of the turn")


# Events

class EventUploadRequest(BaseModel):
    """Body of POST /api/events/upload"""
    session_id: str
    events: List[Dict[str, Any]] = Field(description="Raw Assurance events")


class EventUploadResponse(BaseModel):
    success: bool = True
    message: str
    session_id: str
    processed: int
    added: int
    duplicates: int
    total_events: int


class EventSearchRequest(BaseModel):
    """Body of POST /api/events/search"""
    session_id: str
    query: str = Field(min_length=1)
    limit: int = Field(default=5, ge=1, le=100)
    filters: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Exact-match filters on has_error, is_sdk_event, sdk_extension, vendor, request_id"
    )


class SearchResult(BaseModel):
    content: str
    metadata: Dict[str, Any]


class EventSearchResponse(BaseModel):
    success: bool = True
    session_id: str
    query: str
    results: List[SearchResult]
    total_results: int


# Knowledge base

class DocumentCreateRequest(BaseModel):
    """Body of POST /api/knowledge/documents"""
    content: str
    title: str = Field(min_length=1)
    source: Optional[str] = Field(default=None, description="Dedup key, defaults to the title")
    type: str = Field(default="text")


class DocumentLoadResponse(BaseModel):
    success: bool = True
    action: str = Field(description="added, updated or skipped")
    document: KnowledgeDocument
    chunk_count: int


class UrlLoadRequest(BaseModel):
    """Body of POST /api/knowledge/load-url"""
    url: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, description="Overrides the page title")


class BatchLoadRequest(BaseModel):
    """Body of POST /api/knowledge/load-batch"""
    urls: List[str] = Field(min_length=1)


class BatchLoadError(BaseModel):
    source: str
    error: str


class BatchLoadResponse(BaseModel):
    success: bool = True
    success_count: int
    error_count: int
    documents: List[DocumentLoadResponse]
    errors: List[BatchLoadError]


class DocumentListResponse(BaseModel):
    success: bool = True
    documents: List[KnowledgeDocument]
    total: int


class KnowledgeSearchRequest(BaseModel):
    """Body of POST /api/knowledge/search"""
    query: str = Field(min_length=1)
    limit: int = Field(default=3, ge=1, le=50)


class KnowledgeSearchResponse(BaseModel):
    success: bool = True
    query: str
    results: List[SearchResult]
    total_results: int
