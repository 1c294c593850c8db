import asyncio
import pytest

from assurance_agent.domain.models.intent import Intent
from assurance_agent.domain.orchestration.nodes.intent_classifier import IntentClassifier
from assurance_agent.infrastructure.observability.logging import metrics

from fakes import failing_chat_model, fake_chat_model


@pytest.mark.parametrize("answer, expected", [
    ("debug", Intent.DEBUG),
    ("Analytics", Intent.ANALYTICS),
    (" general.\n", Intent.GENERAL),
    ('"debug"', Intent.DEBUG),
])
def test_recognized_answers(answer, expected):
    intent = asyncio.run(IntentClassifier(fake_chat_model(answer)).classify("my app crashes"))

    assert intent == expected
    assert metrics.get_counter("intent_fallbacks") == 0


@pytest.mark.parametrize("answer", ["maybe", "", "debug analytics", "I think this is a debug question"])
def test_unrecognized_answer_defaults_to_general(answer):
    intent = asyncio.run(IntentClassifier(fake_chat_model(answer)).classify("hmm"))

    assert intent == Intent.GENERAL
    assert metrics.get_counter("intent_fallbacks") == 1


def test_model_error_defaults_to_general():
    llm = failing_chat_model()
    update = asyncio.run(IntentClassifier(llm)({"session_id": "s1", "user_message": "hello"}))

    assert update == {"intent": Intent.GENERAL}
    assert llm.ainvoke.await_count == 1
    assert metrics.get_counter("intent_fallbacks") == 1


def test_parse():
    assert Intent.parse(None) == Intent.GENERAL
    assert Intent.parse(Intent.DEBUG) is Intent.DEBUG
    assert Intent.parse("DEBUG") == Intent.DEBUG
    assert Intent.parse("unknown") == Intent.GENERAL
