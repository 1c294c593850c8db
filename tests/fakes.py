"""Stand-ins for the model service and sample Assurance events."""

from typing import Dict, Any, List
from unittest.mock import AsyncMock, Mock
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings
from langchain_core.language_models.fake_chat_models import FakeListChatModel


def fake_chat_model(*responses: str) -> FakeListChatModel:
    """Chat model answering with the given responses in order"""
    return FakeListChatModel(responses=list(responses))


def failing_chat_model(error: Exception = None) -> Mock:
    """Chat model whose every call raises"""
    llm = Mock()
    llm.ainvoke = AsyncMock(side_effect=error or RuntimeError("model unavailable"))
    return llm


def sdk_event(event_id: str, name: str = "Edge Request", **event_data) -> Dict[str, Any]:
    """SDK extension event as produced by the Assurance SDK"""
    return {
        "uuid": event_id,
        "timestamp": 1700000000000,
        "vendor": "com.adobe.griffon.mobile",
        "type": "generic",
        "payload": {
            "ACPExtensionEventType": "com.adobe.eventtype.edge",
            "ACPExtensionEventSource": "com.adobe.eventsource.requestcontent",
            "ACPExtensionEventName": name,
            "ACPExtensionEventUniqueIdentifier": f"unique-{event_id}",
            "ACPExtensionEventData": dict(event_data)
        }
    }


def backend_event(event_id: str, status: int = 200, messages: List[str] = None) -> Dict[str, Any]:
    """Backend service event as forwarded by Edge Network"""
    return {
        "id": event_id,
        "timestamp": 1700000000500,
        "vendor": "com.adobe.edge.konductor",
        "type": "service",
        "payload": {
            "name": "com.adobe.experience.platform.edge",
            "logLevel": "error" if status >= 400 else "info",
            "context": {"status": status},
            "messages": messages or ["Request processed"]
        }
    }


def text_doc(text: str, **metadata) -> Document:
    return Document(page_content=text, metadata=metadata)


class FlakyEmbeddings(Embeddings):
    """Deterministic embeddings whose n-th embed_documents call raises"""

    def __init__(self, fail_on_call: int, size: int = 32):
        self.inner = DeterministicFakeEmbedding(size=size)
        self.fail_on_call = fail_on_call
        self.calls = 0

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise RuntimeError("embedding service unavailable")
        return self.inner.embed_documents(texts)

    def embed_query(self, text: str) -> List[float]:
        return self.inner.embed_query(text)


def minimal_pdf(text: str) -> bytes:
    """Single-page PDF showing one line of Helvetica text"""

    stream = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R"
        b" /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(out)
