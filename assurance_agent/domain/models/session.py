from typing import Dict, Any, List, Optional, Set
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
import uuid


class MessageRole(str, Enum):
    """Conversation participant"""
    USER = "user"
    ASSISTANT = "assistant"


class ConversationMessage(BaseModel):
    """A single turn in a session's conversation history"""
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def speaker(self) -> str:
        """Capitalized role label used when rendering history into a prompt"""
        return "User" if self.role == MessageRole.USER else "Assistant"


class Session(BaseModel):
    """Debugging session holding conversation history and uploaded events"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = Field(default="anonymous")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    conversation_history: List[ConversationMessage] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list, description="Raw Assurance events in upload order")
    event_ids: Set[str] = Field(default_factory=set, description="Dedup keys of stored events")

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the session without its payloads"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
            "metadata": self.metadata,
            "message_count": len(self.conversation_history),
            "event_count": len(self.events)
        }


class EventUploadResult(BaseModel):
    """Outcome of adding a batch of events to a session"""
    processed: int = 0
    added: int = 0
    duplicates: int = 0
    total_events_in_session: int = 0
