"""
Chat model and embedding factories.

Both talk to an OpenAI-compatible endpoint. The default points at a local
Ollama server, which exposes that API under `/v1`.
"""

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from assurance_agent.infrastructure.config.settings import LLMSettings


def create_chat_model(settings: LLMSettings) -> BaseChatModel:
    """Chat model shared by intent classification and response generation"""
    return ChatOpenAI(
        model=settings.model,
        base_url=settings.base_url,
        api_key=settings.api_key,
        temperature=settings.temperature
    )


def create_embeddings(settings: LLMSettings) -> Embeddings:
    """Embedding model shared by the event and document indexes"""
    return OpenAIEmbeddings(
        model=settings.embedding_model,
        base_url=settings.base_url,
        api_key=settings.api_key,
        # Non-OpenAI backends expect raw strings, not tiktoken ids
        check_embedding_ctx_length=False
    )
