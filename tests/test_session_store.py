import asyncio
from unittest.mock import AsyncMock
import pytest

from assurance_agent.domain.context.memory.session_store import InMemorySessionStore
from assurance_agent.domain.errors import SessionNotFoundError
from assurance_agent.domain.models.session import MessageRole
from assurance_agent.infrastructure.observability.logging import metrics

from fakes import FlakyEmbeddings, backend_event, sdk_event


def test_create_and_get_session(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings)
        session = await store.create_session(metadata={"platform": "ios"})

        assert session.user_id == "anonymous"
        assert await store.get_session(session.id) is session
        assert await store.count() == 1
        assert session.get_summary()["metadata"] == {"platform": "ios"}

    asyncio.run(scenario())


def test_missing_session_raises(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings)

        assert await store.get_session("nope") is None
        with pytest.raises(SessionNotFoundError):
            await store.require_session("nope")
        with pytest.raises(SessionNotFoundError):
            await store.add_message("nope", MessageRole.USER, "hi")
        with pytest.raises(SessionNotFoundError):
            await store.add_events("nope", [sdk_event("e1")])

    asyncio.run(scenario())


def test_history_keeps_order(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings)
        session = await store.create_session()

        await store.add_message(session.id, MessageRole.USER, "first")
        await store.add_message(session.id, MessageRole.ASSISTANT, "second")
        history = await store.get_conversation_history(session.id)

        assert [m.content for m in history] == ["first", "second"]
        assert [m.speaker for m in history] == ["User", "Assistant"]

    asyncio.run(scenario())


def test_duplicate_events_are_skipped(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings)
        session = await store.create_session()

        first = await store.add_events(session.id, [sdk_event("e1"), backend_event("b1")])
        second = await store.add_events(session.id, [sdk_event("e1"), backend_event("b2"), backend_event("b2")])

        assert (first.added, first.duplicates, first.total_events_in_session) == (2, 0, 2)
        assert (second.processed, second.added, second.duplicates) == (3, 1, 2)
        assert second.total_events_in_session == 3
        assert len(session.events) == 3

        event_store = await store.get_event_vector_store(session.id)
        results = await event_store.search("Edge Request", k=10)
        assert sorted(doc.metadata["event_id"] for doc in results) == ["b1", "b2", "e1"]

        assert metrics.get_counter("events_uploaded") == 3
        assert metrics.get_counter("events_duplicated") == 2

    asyncio.run(scenario())


def test_failed_indexing_leaves_session_unchanged(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings)
        session = await store.create_session()
        event_store = await store.get_event_vector_store(session.id)
        event_store.add_events = AsyncMock(side_effect=RuntimeError("embedding service down"))

        with pytest.raises(RuntimeError):
            await store.add_events(session.id, [sdk_event("e1")])

        assert session.events == []
        assert session.event_ids == set()

    asyncio.run(scenario())


def test_failed_batch_is_removed_from_index():
    async def scenario():
        store = InMemorySessionStore(FlakyEmbeddings(fail_on_call=2), embedding_batch_size=2)
        session = await store.create_session()
        events = [backend_event(f"b{i}") for i in range(4)]

        with pytest.raises(RuntimeError):
            await store.add_events(session.id, events)

        event_store = await store.get_event_vector_store(session.id)
        assert session.events == []
        assert session.event_ids == set()
        assert await event_store.search("Request processed", k=10) == []
        assert event_store.get_by_event_id("b0") is None
        assert event_store.stats()["total_events"] == 0

        retried = await store.add_events(session.id, events)
        assert retried.added == 4
        assert event_store.stats()["total_events"] == 4

    asyncio.run(scenario())


def test_concurrent_uploads_to_one_session(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings, embedding_batch_size=3)
        session = await store.create_session()

        batches = [[backend_event(f"b{i}-{j}") for j in range(5)] for i in range(4)]
        await asyncio.gather(*(store.add_events(session.id, batch) for batch in batches))

        assert len(session.events) == 20
        assert len(session.event_ids) == 20

    asyncio.run(scenario())


def test_delete_session(embeddings):
    async def scenario():
        store = InMemorySessionStore(embeddings)
        session = await store.create_session()

        assert await store.delete_session(session.id) is True
        assert await store.delete_session(session.id) is False
        with pytest.raises(SessionNotFoundError):
            await store.get_event_vector_store(session.id)

    asyncio.run(scenario())
