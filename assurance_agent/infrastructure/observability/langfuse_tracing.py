"""Langfuse integration for chat workflow traces."""

from typing import Any, Dict, List
import structlog

from assurance_agent.infrastructure.config.settings import LangfuseSettings

logger = structlog.get_logger(__name__)


class WorkflowTracer:
    """Builds LangChain callbacks that report workflow runs to Langfuse"""

    def __init__(self, settings: LangfuseSettings):
        self.settings = settings
        self._client = None

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def _get_client(self):
        if self._client is None:
            from langfuse import Langfuse

            self._client = Langfuse(
                public_key=self.settings.public_key,
                secret_key=self.settings.secret_key,
                host=self.settings.host
            )
        return self._client

    def get_callbacks(self) -> List[Any]:
        """Callbacks to attach to a workflow invocation"""

        if not self.enabled:
            return []

        from langfuse.langchain import CallbackHandler

        self._get_client()
        return [CallbackHandler(public_key=self.settings.public_key)]

    def build_run_config(self, session_id: str) -> Dict[str, Any]:
        """LangGraph run config carrying callbacks and trace attributes"""

        config: Dict[str, Any] = {
            "run_name": "assurance_chat",
            "callbacks": self.get_callbacks(),
            "metadata": {
                "langfuse_session_id": session_id,
                "langfuse_tags": ["assurance", "chat"]
            }
        }
        return config

    def flush(self):
        """Flush pending traces on shutdown"""

        if self._client is None:
            return
        try:
            self._client.flush()
        except Exception as e:
            logger.warning("Failed to flush Langfuse traces", error=str(e))
