import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from assurance_agent.infrastructure.observability.logging import metrics


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are process-wide; start each test from zero"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def embeddings():
    return DeterministicFakeEmbedding(size=32)
