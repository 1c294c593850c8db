import asyncio

from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.orchestration.nodes.response_generator import ResponseGenerator, build_prompt
from assurance_agent.domain.orchestration.prompts import FALLBACK_RESPONSE, NO_HISTORY_MARKER, SYSTEM_PROMPT
from assurance_agent.infrastructure.observability.logging import metrics

from fakes import failing_chat_model, fake_chat_model


def test_prompt_sections_in_order():
    prompt = build_prompt(
        user_message="Why did it fail?",
        event_context="EVENTS",
        knowledge_context="DOCS",
        history_context="User: hi\n",
        intent=Intent.DEBUG,
        error_count=2
    )

    assert prompt.startswith(SYSTEM_PROMPT)
    assert prompt.index("Relevant documentation:\nDOCS") < prompt.index("Relevant session events:\nEVENTS")
    assert prompt.index("EVENTS") < prompt.index("Note: 2 of the retrieved events contain errors.")
    assert prompt.index("errors.") < prompt.index("Previous conversation:\nUser: hi\n")
    assert prompt.endswith("User: Why did it fail?\n")


def test_empty_context_prompt():
    prompt = build_prompt("hello")

    assert "Relevant documentation" not in prompt
    assert "Relevant session events" not in prompt
    assert f"Previous conversation:\n{NO_HISTORY_MARKER}" in prompt


def test_error_note_only_for_debug():
    assert "Note:" not in build_prompt("q", intent=Intent.ANALYTICS, error_count=3)
    assert "Note:" not in build_prompt("q", intent=Intent.DEBUG, error_count=0)


def test_generates_model_answer():
    update = asyncio.run(ResponseGenerator(fake_chat_model("Use the Edge extension."))({"user_message": "how?"}))

    assert update["response"] == "Use the Edge extension."
    assert update["metadata"] == {"used_fallback": False}


def test_model_error_gives_fallback():
    response = asyncio.run(ResponseGenerator(failing_chat_model()).generate("prompt"))

    assert response == FALLBACK_RESPONSE
    assert metrics.get_counter("generation_failures") == 1


def test_empty_answer_gives_fallback():
    update = asyncio.run(ResponseGenerator(fake_chat_model("   "))({"user_message": "hi"}))

    assert update["response"] == FALLBACK_RESPONSE
    assert update["metadata"] == {"used_fallback": True}
