from assurance_agent.domain.models.intent import Intent
from assurance_agent.infrastructure.config.settings import Settings
from assurance_agent.infrastructure.observability.langfuse_tracing import WorkflowTracer


def test_defaults(monkeypatch):
    for name in ("TOKEN_TOTAL_BUDGET", "PORT", "LLM_MODEL", "LANGFUSE_PUBLIC_KEY", "LANGFUSE_SECRET_KEY"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env(dotenv=False)

    assert settings.port == 3001
    assert settings.llm.model == "llama3.1:8b"
    assert settings.budget.total_budget == 6000
    assert settings.budget.ratios_for(Intent.DEBUG).events == 0.6
    assert settings.retrieval.debug_event_k == 15
    assert settings.langfuse.enabled is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TOKEN_TOTAL_BUDGET", "8000")
    monkeypatch.setenv("DEBUG_EVENT_K", "20")
    monkeypatch.setenv("LLM_BASE_URL", "http://llm:8000/v1")
    monkeypatch.setenv("KNOWLEDGE_BASE_DIR", "/data/kb")

    settings = Settings.from_env(dotenv=False)

    assert settings.budget.total_budget == 8000
    assert settings.retrieval.debug_event_k == 20
    assert settings.llm.base_url == "http://llm:8000/v1"
    assert settings.knowledge_base_dir == "/data/kb"


def test_tracing_disabled_without_keys():
    tracer = WorkflowTracer(Settings().langfuse)
    config = tracer.build_run_config("session-1")

    assert tracer.enabled is False
    assert config["callbacks"] == []
    assert config["metadata"]["langfuse_session_id"] == "session-1"
