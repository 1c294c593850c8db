from typing import List, NamedTuple
import structlog
from langchain_core.documents import Document

from assurance_agent.domain.context.token_estimator import estimate_tokens, truncate_to_token_limit

logger = structlog.get_logger(__name__)

EVENT_SEPARATOR = "\n\n---\n\n"


class FormattedEvents(NamedTuple):
    formatted: str
    events_included: int
    total_tokens: int


def format_event_for_context(event_doc: Document, max_tokens: int = 300) -> str:
    """Render one retrieved event within a token budget"""

    content = event_doc.page_content or ""
    if estimate_tokens(content) <= max_tokens:
        return content

    return truncate_to_token_limit(content, max_tokens)


def format_events_for_context(event_docs: List[Document], max_total_tokens: int = 3000) -> FormattedEvents:
    """Render as many events as fit a total budget, in retrieval order

    The budget is split evenly across the candidates and each event is cut
    to its share. Aggregation stops at the first event that would overflow
    the total; events are never cut at this level.
    """

    if not event_docs or max_total_tokens <= 0:
        return FormattedEvents("", 0, 0)

    tokens_per_event = max_total_tokens // max(1, len(event_docs))
    formatted_events = []
    total_tokens = 0

    for event_doc in event_docs:
        formatted = format_event_for_context(event_doc, tokens_per_event)
        event_tokens = estimate_tokens(formatted)

        if total_tokens + event_tokens > max_total_tokens:
            logger.info(
                "Event token budget exhausted",
                included=len(formatted_events),
                offered=len(event_docs)
            )
            break

        if formatted:
            formatted_events.append(formatted)
            total_tokens += event_tokens

    return FormattedEvents(
        EVENT_SEPARATOR.join(formatted_events),
        len(formatted_events),
        total_tokens
    )
