import asyncio

from assurance_agent.domain.context.memory.event_vector_store import EventVectorStore

from fakes import backend_event, sdk_event


def _store(embeddings) -> EventVectorStore:
    return EventVectorStore("session-1", embeddings, batch_size=2)


def test_search_on_empty_store(embeddings):
    assert asyncio.run(_store(embeddings).search("anything")) == []


def test_search_with_filters(embeddings):
    async def scenario():
        store = _store(embeddings)
        await store.add_events([
            sdk_event("e1", status=200, requestId="r1"),
            sdk_event("e2", status=500, requestId="r1"),
            backend_event("b1", status=503),
            backend_event("b2", status=200),
        ])

        errors = await store.search("failure", k=10, filters={"has_error": True})
        sdk_only = await store.search("request", k=10, filters={"is_sdk_event": True, "unknown_field": "x"})
        none = await store.search("request", k=0)

        assert sorted(doc.metadata["event_id"] for doc in errors) == ["b1", "e2"]
        assert sorted(doc.metadata["event_id"] for doc in sdk_only) == ["e1", "e2"]
        assert none == []

    asyncio.run(scenario())


def test_lookups_and_stats(embeddings):
    async def scenario():
        store = _store(embeddings)
        child = sdk_event("e2", requestId="r1")
        child["payload"]["ACPExtensionEventParentIdentifier"] = "unique-e1"
        added = await store.add_events([sdk_event("e1", requestId="r1"), child, backend_event("b1", status=500)])

        assert added == 3
        assert store.get_by_event_id("b1").metadata["has_error"] is True
        assert [d.metadata["event_id"] for d in store.get_by_request_id("r1")] == ["e1", "e2"]
        assert [d.metadata["event_id"] for d in store.get_by_parent_id("unique-e1")] == ["e2"]
        assert store.stats() == {
            "session_id": "session-1",
            "total_events": 3,
            "error_events": 1,
            "sdk_events": 2,
            "backend_events": 1
        }

    asyncio.run(scenario())
