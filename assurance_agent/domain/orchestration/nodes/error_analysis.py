import structlog

from assurance_agent.domain.models.workflow_state import WorkflowState, ErrorAnalysisUpdate

logger = structlog.get_logger(__name__)


async def analyze_errors(state: WorkflowState) -> ErrorAnalysisUpdate:
    """Workflow node: pick out retrieved events flagged as errors

    Runs only for debug intent. It never changes the retrieved candidates,
    so formatting sees exactly what retrieval produced.
    """

    error_events = [
        doc for doc in state.get("raw_events") or []
        if doc.metadata.get("has_error")
    ]

    logger.info(
        "Analyzed retrieved events for errors",
        session_id=state.get("session_id"),
        error_count=len(error_events)
    )

    return {
        "error_events": error_events,
        "metadata": {"error_count": len(error_events)}
    }
