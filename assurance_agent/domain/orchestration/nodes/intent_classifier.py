import structlog
from langchain_core.language_models import BaseChatModel

from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.models.workflow_state import WorkflowState, IntentUpdate
from assurance_agent.domain.orchestration.prompts import INTENT_PROMPT
from assurance_agent.infrastructure.observability.logging import metrics

logger = structlog.get_logger(__name__)


class IntentClassifier:
    """Maps a user message onto a single intent with one model call

    Classification never fails the workflow: an out-of-vocabulary answer or
    a model error both resolve to GENERAL. There is no retry.
    """

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    async def classify(self, user_message: str) -> Intent:
        prompt = INTENT_PROMPT.format(message=user_message)

        try:
            with metrics.timed("classify_intent"):
                response = await self.llm.ainvoke(prompt)
        except Exception as e:
            metrics.increment_counter("intent_fallbacks", tags={"reason": "error"})
            logger.warning("Intent classification failed, defaulting to general", error=str(e))
            return Intent.GENERAL

        answer = response.content if isinstance(response.content, str) else str(response.content)
        intent = Intent.parse(answer)

        if intent.value != answer.strip().lower().strip(".\"'"):
            metrics.increment_counter("intent_fallbacks", tags={"reason": "unrecognized"})
            logger.info("Unrecognized intent answer", answer=answer[:50], intent=intent.value)

        return intent

    async def __call__(self, state: WorkflowState) -> IntentUpdate:
        """Workflow node: classify the user's intent"""

        intent = await self.classify(state.get("user_message", ""))
        logger.info("Classified intent", session_id=state.get("session_id"), intent=intent.value)
        return {"intent": intent}
