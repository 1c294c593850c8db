from typing import Optional
import structlog
from langchain_core.language_models import BaseChatModel

from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.models.workflow_state import WorkflowState, ResponseUpdate
from assurance_agent.domain.orchestration.prompts import SYSTEM_PROMPT, FALLBACK_RESPONSE, NO_HISTORY_MARKER
from assurance_agent.infrastructure.observability.logging import metrics

logger = structlog.get_logger(__name__)


def build_prompt(
    user_message: str,
    event_context: str = "",
    knowledge_context: str = "",
    history_context: str = "",
    intent: Intent = Intent.GENERAL,
    error_count: int = 0,
    system_prompt: str = SYSTEM_PROMPT
) -> str:
    """Assemble the single generation prompt from formatted context blocks"""

    sections = [system_prompt]

    if knowledge_context:
        sections.append(f"Relevant documentation:\n{knowledge_context}")

    if event_context:
        sections.append(f"Relevant session events:\n{event_context}")

    if intent == Intent.DEBUG and error_count > 0:
        sections.append(f"Note: {error_count} of the retrieved events contain errors.")

    sections.append(f"Previous conversation:\n{history_context or NO_HISTORY_MARKER}")
    sections.append(f"User: {user_message}\n")

    return "\n\n".join(sections)


class ResponseGenerator:
    """Terminal workflow node; always yields a response string"""

    def __init__(self, llm: BaseChatModel, system_prompt: Optional[str] = None):
        self.llm = llm
        self.system_prompt = system_prompt or SYSTEM_PROMPT

    async def generate(self, prompt: str) -> str:
        try:
            with metrics.timed("generate_response"):
                ai_message = await self.llm.ainvoke(prompt)
            content = ai_message.content if isinstance(ai_message.content, str) else str(ai_message.content)
            if not content.strip():
                raise ValueError("Model returned an empty response")
        except Exception as e:
            metrics.increment_counter("generation_failures")
            logger.error("Response generation failed", error=str(e))
            return FALLBACK_RESPONSE

        logger.info("Response generated", characters=len(content))
        return content

    async def __call__(self, state: WorkflowState) -> ResponseUpdate:
        """Workflow node: build the prompt and call the model once"""

        metadata = state.get("metadata") or {}
        prompt = build_prompt(
            user_message=state.get("user_message", ""),
            event_context=state.get("formatted_event_context", ""),
            knowledge_context=state.get("formatted_knowledge_context", ""),
            history_context=state.get("formatted_history_context", ""),
            intent=Intent.parse(state.get("intent")),
            error_count=metadata.get("error_count", 0),
            system_prompt=self.system_prompt
        )

        response = await self.generate(prompt)
        return {
            "response": response,
            "metadata": {"used_fallback": response == FALLBACK_RESPONSE}
        }
