import json

from assurance_agent.domain.events.assurance_event import (
    build_event_metadata, build_semantic_content, detect_error, event_key, extract_error_info, to_document
)

from fakes import backend_event, sdk_event


def test_event_key_prefers_explicit_ids():
    assert event_key({"id": "a", "eventId": "b", "uuid": "c"}) == "a"
    assert event_key({"eventId": "b", "uuid": "c"}) == "b"
    assert event_key({"uuid": "c"}) == "c"
    assert event_key({"payload": {"ACPExtensionEventUniqueIdentifier": "u-1"}}) == "u-1"


def test_event_key_hashes_events_without_ids():
    first = event_key({"vendor": "x", "payload": {"a": 1, "b": 2}})
    same = event_key({"payload": {"b": 2, "a": 1}, "vendor": "x"})
    other = event_key({"vendor": "y", "payload": {"a": 1, "b": 2}})

    assert first.startswith("sha256:")
    assert first == same
    assert first != other


def test_successful_events_are_not_errors():
    assert not detect_error(sdk_event("e1", status=200))
    assert not detect_error(backend_event("b1", status=200))


def test_error_signals():
    assert detect_error(sdk_event("e1", status=500))
    assert detect_error(sdk_event("e2", status="404"))
    assert detect_error(sdk_event("e3", title="Request failed"))
    assert detect_error(backend_event("b1", status=503))
    assert detect_error({"payload": {"ACPExtensionEventSource": "com.adobe.eventSource.errorResponseContent"}})
    assert detect_error({"payload": {"name": "com.adobe.edge/error"}})
    assert detect_error({"payload": {"errors": [{"code": "EXEG-0201"}]}})


def test_error_summary_is_capped():
    event = sdk_event("e1", status=400, title="Invalid request", detail="d" * 500)
    info = extract_error_info(event)

    assert info.startswith("400 Invalid request - ")
    assert len(info) == 200


def test_semantic_content_puts_error_first():
    event = backend_event("b1", status=500, messages=["Upstream timeout", "z" * 300])
    content = build_semantic_content(event)
    lines = content.split("\n")

    assert lines[0].startswith("ERROR: 500")
    assert "Vendor: com.adobe.edge.konductor" in lines
    assert "Service: com.adobe.experience.platform.edge" in lines
    assert lines[-1] == "Upstream timeout"


def test_semantic_content_for_sdk_event():
    event = sdk_event("e1", name="Consent Update", action="update", stateowner="com.adobe.consent")
    content = build_semantic_content(event)

    assert content.split("\n") == [
        "SDK Extension: com.adobe.eventtype.edge",
        "Event: Consent Update",
        "Source: com.adobe.eventsource.requestcontent",
        "Action: update",
        "State Owner: com.adobe.consent",
    ]


def test_event_metadata():
    event = sdk_event("e1", status=502, requestId="req-9")
    event["payload"]["ACPExtensionEventParentIdentifier"] = "parent-1"
    metadata = build_event_metadata(event)

    assert metadata["event_id"] == "e1"
    assert metadata["parent_event_id"] == "parent-1"
    assert metadata["request_id"] == "req-9"
    assert metadata["is_sdk_event"] is True
    assert metadata["sdk_extension"] == "com.adobe.eventtype.edge"
    assert metadata["has_error"] is True
    assert metadata["status_code"] == 502
    assert metadata["has_state_change"] is False
    assert json.loads(metadata["raw_event"]) == event


def test_to_document_does_not_mutate_event():
    event = backend_event("b1", status=404)
    snapshot = json.dumps(event, sort_keys=True)

    doc = to_document(event)

    assert doc.metadata["is_sdk_event"] is False
    assert doc.metadata["vendor"] == "com.adobe.edge.konductor"
    assert json.dumps(event, sort_keys=True) == snapshot
