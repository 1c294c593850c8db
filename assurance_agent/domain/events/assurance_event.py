"""
Helpers over raw Assurance telemetry records.

Events arrive as opaque JSON objects. Two shapes matter:

* SDK extension events, whose payload carries ``ACPExtensionEvent*`` fields
  (type, source, name, unique id, parent id and an event data object);
* backend service events, identified by vendor/type with a payload holding
  status, log level and messages.

Nothing here mutates an event; stored events are immutable.
"""

from typing import Dict, Any, Optional
from langchain_core.documents import Document
import hashlib
import json

MAX_ERROR_SUMMARY_CHARS = 200
MAX_MESSAGE_CHARS = 200


def _payload(event: Dict[str, Any]) -> Dict[str, Any]:
    payload = event.get("payload")
    return payload if isinstance(payload, dict) else {}


def _event_data(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = payload.get("ACPExtensionEventData")
    return data if isinstance(data, dict) else {}


def _nested(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _as_status(value: Any) -> Optional[int]:
    """HTTP-like status as an int, tolerating string values"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _is_error_status(value: Any) -> bool:
    status = _as_status(value)
    return status is not None and status >= 400


def _join_messages(messages: Any) -> str:
    if isinstance(messages, list):
        return " ".join(str(m) for m in messages)
    return str(messages) if messages else ""


def content_hash(event: Dict[str, Any]) -> str:
    """SHA-256 over the canonical JSON form of an event"""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def event_key(event: Dict[str, Any]) -> str:
    """Deduplication key: the event's own id, or a content hash without one"""

    for field in ("id", "eventId", "uuid"):
        value = event.get(field)
        if value:
            return str(value)

    unique_id = _payload(event).get("ACPExtensionEventUniqueIdentifier")
    if unique_id:
        return str(unique_id)

    return f"sha256:{content_hash(event)}"


def is_sdk_event(event: Dict[str, Any]) -> bool:
    return bool(_payload(event).get("ACPExtensionEventType"))


def detect_error(event: Dict[str, Any]) -> bool:
    """Check an event against the known error signals"""

    payload = _payload(event)
    event_data = _event_data(payload)
    context = _nested(payload, "context")

    event_source = payload.get("ACPExtensionEventSource")
    title = event_data.get("title")
    service_name = payload.get("name")
    errors = payload.get("errors")

    return bool(
        # SDK event errors
        _is_error_status(event_data.get("status"))
        or (isinstance(event_source, str) and "error" in event_source.lower())
        or (isinstance(title, str) and "fail" in title.lower())
        # Backend event errors
        or payload.get("logLevel") == "error"
        or _is_error_status(context.get("status"))
        or (isinstance(service_name, str) and "/error" in service_name)
        # General
        or (isinstance(errors, list) and len(errors) > 0)
    )


def extract_error_info(event: Dict[str, Any]) -> Optional[str]:
    """Short human readable error description, or None"""

    payload = _payload(event)
    event_data = _event_data(payload)
    context = _nested(payload, "context")

    if _is_error_status(event_data.get("status")) or event_data.get("title") or event_data.get("detail"):
        summary = f"{event_data.get('status') or ''} {event_data.get('title') or ''} - {event_data.get('detail') or ''}"
        return summary.strip()[:MAX_ERROR_SUMMARY_CHARS]

    if _is_error_status(context.get("status")):
        messages = _join_messages(payload.get("messages"))
        summary = f"{context.get('status')} {context.get('errorType') or ''} - {messages}"
        return summary.strip()[:MAX_ERROR_SUMMARY_CHARS]

    if payload.get("logLevel") == "error" and payload.get("messages"):
        return _join_messages(payload.get("messages"))[:MAX_ERROR_SUMMARY_CHARS]

    event_source = payload.get("ACPExtensionEventSource")
    if isinstance(event_source, str) and "error" in event_source.lower():
        return f"Error from {payload.get('ACPExtensionEventName') or 'unknown'}"

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        return json.dumps(errors, default=str)[:MAX_ERROR_SUMMARY_CHARS]

    return None


def build_semantic_content(event: Dict[str, Any]) -> str:
    """Render the parts of an event worth embedding, errors first"""

    payload = _payload(event)
    event_data = _event_data(payload)
    parts = []

    if payload.get("ACPExtensionEventType"):
        parts.append(f"SDK Extension: {payload.get('ACPExtensionEventType')}")
        parts.append(f"Event: {payload.get('ACPExtensionEventName')}")
        if payload.get("ACPExtensionEventSource"):
            parts.append(f"Source: {payload.get('ACPExtensionEventSource')}")
    else:
        parts.append(f"Vendor: {event.get('vendor')}")
        parts.append(f"Type: {event.get('type')}")
        if payload.get("name"):
            parts.append(f"Service: {payload.get('name')}")

    error_info = extract_error_info(event)
    if error_info:
        parts.insert(0, f"ERROR: {error_info}")

    if event_data.get("action"):
        parts.append(f"Action: {event_data.get('action')}")
    if event_data.get("stateowner"):
        parts.append(f"State Owner: {event_data.get('stateowner')}")

    messages = payload.get("messages")
    if isinstance(messages, list):
        short = " ".join(m for m in messages if isinstance(m, str) and len(m) < MAX_MESSAGE_CHARS)
        if short:
            parts.append(short)

    return "\n".join(p for p in parts if p)


def build_event_metadata(event: Dict[str, Any]) -> Dict[str, Any]:
    """Filterable metadata stored next to an event's embedding"""

    payload = _payload(event)
    event_data = _event_data(payload)
    context = _nested(payload, "context")
    attributes = _nested(payload, "attributes")
    payload_metadata = _nested(payload, "metadata")

    return {
        # Identity and relationships
        "event_id": event_key(event),
        "parent_event_id": payload.get("ACPExtensionEventParentIdentifier"),
        "request_id": event_data.get("requestId") or attributes.get("requestId"),

        # Categorization
        "is_sdk_event": is_sdk_event(event),
        "sdk_extension": payload.get("ACPExtensionEventType"),
        "event_name": payload.get("ACPExtensionEventName"),
        "event_source": payload.get("ACPExtensionEventSource"),
        "vendor": event.get("vendor"),
        "service_type": event.get("type"),

        # Errors
        "has_error": detect_error(event),
        "status_code": event_data.get("status") or payload.get("status") or context.get("status"),
        "log_level": payload.get("logLevel"),

        # State changes
        "has_state_change": bool(event_data.get("stateowner") or payload_metadata.get("state.data")),
        "state_owner": event_data.get("stateowner"),

        # Timing
        "timestamp": event.get("timestamp"),
        "event_number": event.get("eventNumber") or 0,

        "raw_event": json.dumps(event, default=str)
    }


def to_document(event: Dict[str, Any]) -> Document:
    """Index document for one event"""
    return Document(
        page_content=build_semantic_content(event),
        metadata=build_event_metadata(event)
    )
