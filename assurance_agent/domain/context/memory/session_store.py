from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional
from collections import defaultdict
import asyncio
import structlog
from langchain_core.embeddings import Embeddings

from assurance_agent.domain.errors import SessionNotFoundError
from assurance_agent.domain.events.assurance_event import event_key
from assurance_agent.domain.models.session import (
    Session, ConversationMessage, MessageRole, EventUploadResult
)
from assurance_agent.domain.context.memory.event_vector_store import EventVectorStore
from assurance_agent.infrastructure.observability.logging import workflow_logger, metrics

logger = structlog.get_logger(__name__)


class SessionStore(ABC):
    """Owns debugging sessions and their per-session event indexes"""

    @abstractmethod
    async def create_session(self, user_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> Session:
        pass

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        pass

    @abstractmethod
    async def list_sessions(self) -> List[Session]:
        pass

    @abstractmethod
    async def add_message(self, session_id: str, role: MessageRole, content: str) -> ConversationMessage:
        pass

    @abstractmethod
    async def get_conversation_history(self, session_id: str) -> List[ConversationMessage]:
        pass

    @abstractmethod
    async def add_events(self, session_id: str, events: List[Dict[str, Any]]) -> EventUploadResult:
        pass

    @abstractmethod
    async def get_event_vector_store(self, session_id: str) -> EventVectorStore:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    async def require_session(self, session_id: str) -> Session:
        """Get a session or raise SessionNotFoundError"""

        session = await self.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session


class InMemorySessionStore(SessionStore):
    """Process-lifetime session store

    Sessions live in a dict keyed by id. Appends to one session are
    serialized by a per-session lock; different sessions never contend.
    """

    def __init__(self, embeddings: Embeddings, embedding_batch_size: int = 10):
        self.embeddings = embeddings
        self.embedding_batch_size = embedding_batch_size
        self.sessions: Dict[str, Session] = {}
        self.event_stores: Dict[str, EventVectorStore] = {}
        self._session_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._lock = asyncio.Lock()

    async def create_session(self, user_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> Session:
        """Create a session with an empty event index"""

        session = Session(user_id=user_id or "anonymous", metadata=metadata or {})

        async with self._lock:
            self.sessions[session.id] = session
            self.event_stores[session.id] = EventVectorStore(
                session.id,
                self.embeddings,
                batch_size=self.embedding_batch_size
            )
            metrics.set_gauge("active_sessions", len(self.sessions))

        workflow_logger.log_session_change(session.id, "created", user_id=session.user_id)
        return session

    async def get_session(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    async def delete_session(self, session_id: str) -> bool:
        """Drop a session and its event index"""

        async with self._lock:
            deleted = self.sessions.pop(session_id, None) is not None
            self.event_stores.pop(session_id, None)
            self._session_locks.pop(session_id, None)
            metrics.set_gauge("active_sessions", len(self.sessions))

        if deleted:
            workflow_logger.log_session_change(session_id, "deleted")
        return deleted

    async def list_sessions(self) -> List[Session]:
        return list(self.sessions.values())

    async def add_message(self, session_id: str, role: MessageRole, content: str) -> ConversationMessage:
        """Append a message to the conversation history"""

        session = await self.require_session(session_id)
        message = ConversationMessage(role=role, content=content)

        async with self._session_locks[session_id]:
            session.conversation_history.append(message)

        return message

    async def get_conversation_history(self, session_id: str) -> List[ConversationMessage]:
        session = self.sessions.get(session_id)
        return list(session.conversation_history) if session else []

    async def add_events(self, session_id: str, events: List[Dict[str, Any]]) -> EventUploadResult:
        """Store new events and index them, skipping duplicates"""

        session = await self.require_session(session_id)
        event_store = self.event_stores[session_id]
        result = EventUploadResult(processed=len(events))

        async with self._session_locks[session_id]:
            new_events = []
            for event in events:
                key = event_key(event)
                if key in session.event_ids:
                    result.duplicates += 1
                    continue
                session.event_ids.add(key)
                new_events.append(event)

            if new_events:
                try:
                    await event_store.add_events(new_events)
                except Exception:
                    # Keep raw storage and index consistent
                    for event in new_events:
                        session.event_ids.discard(event_key(event))
                    raise
                session.events.extend(new_events)

            result.added = len(new_events)
            result.total_events_in_session = len(session.events)

        metrics.increment_counter("events_uploaded", value=result.added)
        metrics.increment_counter("events_duplicated", value=result.duplicates)

        workflow_logger.log_session_change(session_id, "events_uploaded", **result.model_dump())
        return result

    async def get_event_vector_store(self, session_id: str) -> EventVectorStore:
        event_store = self.event_stores.get(session_id)
        if event_store is None:
            raise SessionNotFoundError(session_id)
        return event_store

    async def count(self) -> int:
        return len(self.sessions)
