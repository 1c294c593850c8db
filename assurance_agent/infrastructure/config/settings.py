"""
Service configuration loaded from the environment.

Values can also come from a `.env` file in the working directory. Every
tunable constant of the chat pipeline lives here so deployments can adjust
budgets and retrieval breadth without code changes.
"""

from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os

from assurance_agent.domain.models.budget import TokenBudgetConfig


class LLMSettings(BaseModel):
    """OpenAI-compatible chat and embedding endpoint"""
    base_url: str = "http://localhost:11434/v1"
    model: str = "llama3.1:8b"
    api_key: str = "ollama"
    temperature: float = 0.5
    embedding_model: str = "nomic-embed-text"


class RetrievalSettings(BaseModel):
    """Retrieval breadth per source"""
    debug_event_k: int = Field(default=15, ge=0)
    default_event_k: int = Field(default=5, ge=0)
    doc_search_k: int = Field(default=3, ge=0)


class IngestionSettings(BaseModel):
    """Limits for event uploads and knowledge base documents"""
    max_events_per_request: int = Field(default=200, ge=1)
    embedding_batch_size: int = Field(default=10, ge=1)
    kb_chunk_size: int = Field(default=1000, ge=1)
    kb_chunk_overlap: int = Field(default=200, ge=0)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    url_timeout_seconds: float = Field(default=30.0, gt=0)


class LangfuseSettings(BaseModel):
    """Langfuse credentials; tracing stays off unless both keys are set"""
    public_key: Optional[str] = None
    secret_key: Optional[str] = None
    host: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.public_key and self.secret_key)


class Settings(BaseModel):
    """Top-level service settings"""
    service_name: str = "assurance-agent"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"
    host: str = "0.0.0.0"
    port: int = 3001
    knowledge_base_dir: Optional[str] = None
    llm: LLMSettings = Field(default_factory=LLMSettings)
    budget: TokenBudgetConfig = Field(default_factory=TokenBudgetConfig)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    langfuse: LangfuseSettings = Field(default_factory=LangfuseSettings)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables"""

        if dotenv:
            load_dotenv()

        env = os.environ

        return cls(
            service_name=env.get("SERVICE_NAME", "assurance-agent"),
            environment=env.get("ENVIRONMENT", "development"),
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_format=env.get("LOG_FORMAT", "json"),
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "3001")),
            knowledge_base_dir=env.get("KNOWLEDGE_BASE_DIR"),
            llm=LLMSettings(
                base_url=env.get("LLM_BASE_URL", "http://localhost:11434/v1"),
                model=env.get("LLM_MODEL", "llama3.1:8b"),
                api_key=env.get("LLM_API_KEY", "ollama"),
                temperature=float(env.get("LLM_TEMPERATURE", "0.5")),
                embedding_model=env.get("EMBEDDING_MODEL", "nomic-embed-text")
            ),
            budget=TokenBudgetConfig(
                total_budget=int(env.get("TOKEN_TOTAL_BUDGET", "6000")),
                system_prompt_reserve=int(env.get("SYSTEM_PROMPT_TOKENS", "250")),
                response_reserve=int(env.get("RESPONSE_BUFFER_TOKENS", "2000")),
                max_docs=int(env.get("MAX_DOCS_IN_CONTEXT", "3"))
            ),
            retrieval=RetrievalSettings(
                debug_event_k=int(env.get("DEBUG_EVENT_K", "15")),
                default_event_k=int(env.get("DEFAULT_EVENT_K", "5")),
                doc_search_k=int(env.get("DOC_SEARCH_K", "3"))
            ),
            ingestion=IngestionSettings(
                max_events_per_request=int(env.get("MAX_EVENTS_PER_REQUEST", "200")),
                embedding_batch_size=int(env.get("EMBEDDING_BATCH_SIZE", "10")),
                kb_chunk_size=int(env.get("KB_CHUNK_SIZE", "1000")),
                kb_chunk_overlap=int(env.get("KB_CHUNK_OVERLAP", "200")),
                max_upload_bytes=int(env.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
                url_timeout_seconds=float(env.get("URL_FETCH_TIMEOUT", "30"))
            ),
            langfuse=LangfuseSettings(
                public_key=env.get("LANGFUSE_PUBLIC_KEY"),
                secret_key=env.get("LANGFUSE_SECRET_KEY"),
                host=env.get("LANGFUSE_HOST")
            )
        )
