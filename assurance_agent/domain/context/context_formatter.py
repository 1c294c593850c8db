from typing import Dict, List, Any, Optional
from pydantic import BaseModel, Field
from langchain_core.documents import Document

from assurance_agent.domain.context.event_formatter import format_events_for_context
from assurance_agent.domain.context.token_estimator import estimate_tokens
from assurance_agent.domain.models.budget import TokenBudgetConfig, BudgetAllocation
from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.models.session import ConversationMessage
from assurance_agent.domain.models.workflow_state import WorkflowState, FormattingUpdate
from assurance_agent.infrastructure.observability.logging import workflow_logger

DOC_SEPARATOR = "\n\n"


class FormattedContext(BaseModel):
    """Prompt-ready context blocks and their realized token counts"""
    event_context: str = ""
    knowledge_context: str = ""
    history_context: str = ""
    event_tokens: int = 0
    doc_tokens: int = 0
    history_tokens: int = 0
    events_included: int = 0
    docs_included: int = 0
    messages_included: int = 0
    allocation: BudgetAllocation = Field(default_factory=BudgetAllocation)

    @property
    def context_tokens(self) -> int:
        return self.event_tokens + self.doc_tokens + self.history_tokens


def format_history_message(message: ConversationMessage) -> str:
    return f"{message.speaker}: {message.content}\n"


class ContextFormatter:
    """Fits retrieved events, documents and history into a fixed token budget

    Formatting is pure: no I/O, and the output depends only on the inputs and
    the candidate order, so identical inputs give identical prompts.
    """

    def __init__(self, budget: Optional[TokenBudgetConfig] = None):
        self.budget = budget or TokenBudgetConfig()

    def allocate(self, intent: Intent, user_message: str) -> BudgetAllocation:
        """Split what is left of the total budget across the three slices"""

        available = (
            self.budget.total_budget
            - self.budget.system_prompt_reserve
            - estimate_tokens(user_message)
            - self.budget.response_reserve
        )
        if available <= 0:
            return BudgetAllocation(available=max(available, 0))

        ratios = self.budget.ratios_for(intent)
        return BudgetAllocation(
            available=available,
            events=int(available * ratios.events),
            docs=int(available * ratios.docs),
            history=int(available * ratios.history)
        )

    def format_docs(self, docs: List[Document], budget: int) -> Dict[str, Any]:
        """Top-ranked documents as `[title]` blocks while they fit"""

        blocks = []
        total_tokens = 0

        for doc in docs[:self.budget.max_docs]:
            title = doc.metadata.get("title") or doc.metadata.get("source") or "Untitled"
            block = f"[{title}]\n{doc.page_content}"
            tokens = estimate_tokens(block)

            if total_tokens + tokens > budget:
                break

            blocks.append(block)
            total_tokens += tokens

        return {"text": DOC_SEPARATOR.join(blocks), "tokens": total_tokens, "count": len(blocks)}

    def format_history(self, history: List[ConversationMessage], budget: int) -> Dict[str, Any]:
        """Most recent messages that fit, rendered in chronological order"""

        lines = []
        total_tokens = 0

        # Walk newest first so the oldest turns are the ones dropped
        for message in reversed(history):
            line = format_history_message(message)
            tokens = estimate_tokens(line)

            if total_tokens + tokens > budget:
                break

            lines.append(line)
            total_tokens += tokens

        lines.reverse()
        return {"text": "".join(lines), "tokens": total_tokens, "count": len(lines)}

    def format(
        self,
        intent: Intent,
        user_message: str,
        raw_events: List[Document],
        raw_docs: List[Document],
        history: List[ConversationMessage]
    ) -> FormattedContext:
        """Build all three context blocks within their allocated slices"""

        allocation = self.allocate(intent, user_message)

        events = format_events_for_context(raw_events, allocation.events)
        docs = self.format_docs(raw_docs, allocation.docs)
        history_block = self.format_history(history, allocation.history)

        return FormattedContext(
            event_context=events.formatted,
            knowledge_context=docs["text"],
            history_context=history_block["text"],
            event_tokens=events.total_tokens,
            doc_tokens=docs["tokens"],
            history_tokens=history_block["tokens"],
            events_included=events.events_included,
            docs_included=docs["count"],
            messages_included=history_block["count"],
            allocation=allocation
        )

    def __call__(self, state: WorkflowState) -> FormattingUpdate:
        """Workflow node: format retrieved context under the token budget"""

        intent = Intent.parse(state.get("intent"))
        user_message = state.get("user_message", "")

        context = self.format(
            intent=intent,
            user_message=user_message,
            raw_events=state.get("raw_events") or [],
            raw_docs=state.get("raw_docs") or [],
            history=state.get("conversation_history") or []
        )

        tokens_used = (
            context.context_tokens
            + self.budget.system_prompt_reserve
            + estimate_tokens(user_message)
        )

        workflow_logger.log_budget_usage(
            session_id=state.get("session_id"),
            intent=intent.value,
            allocated=context.allocation.model_dump(),
            used={
                "events": context.event_tokens,
                "docs": context.doc_tokens,
                "history": context.history_tokens,
                "total": tokens_used
            },
            total_budget=self.budget.total_budget
        )

        return {
            "formatted_event_context": context.event_context,
            "formatted_knowledge_context": context.knowledge_context,
            "formatted_history_context": context.history_context,
            "tokens_used": tokens_used,
            "metadata": {
                "event_tokens": context.event_tokens,
                "doc_tokens": context.doc_tokens,
                "history_tokens": context.history_tokens,
                "events_included": context.events_included,
                "docs_included": context.docs_included,
                "messages_included": context.messages_included,
                "budget": context.allocation.model_dump()
            }
        }
