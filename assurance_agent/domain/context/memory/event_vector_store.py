from typing import Dict, List, Any, Optional
import asyncio
import time
import structlog
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore

from assurance_agent.domain.events.assurance_event import to_document

logger = structlog.get_logger(__name__)

# Metadata keys that can be used as exact-match search filters
FILTERABLE_FIELDS = ("has_error", "is_sdk_event", "sdk_extension", "vendor", "request_id")


class EventVectorStore:
    """Per-session semantic index over Assurance events"""

    def __init__(self, session_id: str, embeddings: Embeddings, batch_size: int = 10):
        self.session_id = session_id
        self.batch_size = max(1, batch_size)
        self.index = InMemoryVectorStore(embedding=embeddings)
        self.documents: Dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def add_events(self, events: List[Dict[str, Any]]) -> int:
        """Embed and index events, batch by batch"""

        if not events:
            return 0

        start = time.perf_counter()
        added = 0

        async with self._lock:
            indexed_ids: List[str] = []
            try:
                for offset in range(0, len(events), self.batch_size):
                    batch = events[offset:offset + self.batch_size]
                    documents = [to_document(event) for event in batch]
                    ids = [doc.metadata["event_id"] for doc in documents]

                    await self.index.aadd_documents(documents, ids=ids)

                    indexed_ids.extend(ids)
                    for doc_id, doc in zip(ids, documents):
                        self.documents[doc_id] = doc
                    added += len(documents)

                    if len(events) > self.batch_size:
                        logger.debug(
                            "Indexed event batch",
                            session_id=self.session_id,
                            processed=min(offset + self.batch_size, len(events)),
                            total=len(events)
                        )
            except Exception:
                # Earlier batches of a failed upload must not stay searchable
                if indexed_ids:
                    await self.index.adelete(indexed_ids)
                    for doc_id in indexed_ids:
                        self.documents.pop(doc_id, None)
                logger.warning(
                    "Event indexing failed, upload rolled back",
                    session_id=self.session_id,
                    rolled_back=len(indexed_ids)
                )
                raise

        logger.info(
            "Added events to vector store",
            session_id=self.session_id,
            count=added,
            duration_s=round(time.perf_counter() - start, 2)
        )
        return added

    async def search(
        self,
        query: str,
        k: int = 5,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Document]:
        """Semantic search with optional exact-match metadata filters"""

        if k <= 0 or not self.documents:
            return []

        where = {
            key: value for key, value in (filters or {}).items()
            if key in FILTERABLE_FIELDS and value is not None
        }

        def matches(doc: Document) -> bool:
            return all(doc.metadata.get(key) == value for key, value in where.items())

        return await self.index.asimilarity_search(
            query,
            k=k,
            filter=matches if where else None
        )

    def get_by_event_id(self, event_id: str) -> Optional[Document]:
        return self.documents.get(event_id)

    def get_by_request_id(self, request_id: str) -> List[Document]:
        """All events belonging to one request, in upload order"""
        return [
            doc for doc in self.documents.values()
            if doc.metadata.get("request_id") == request_id
        ]

    def get_by_parent_id(self, parent_event_id: str) -> List[Document]:
        """Child events of an SDK event"""
        return [
            doc for doc in self.documents.values()
            if doc.metadata.get("parent_event_id") == parent_event_id
        ]

    def stats(self) -> Dict[str, Any]:
        """Counts over the indexed events"""

        total = len(self.documents)
        errors = sum(1 for doc in self.documents.values() if doc.metadata.get("has_error"))
        sdk_events = sum(1 for doc in self.documents.values() if doc.metadata.get("is_sdk_event"))

        return {
            "session_id": self.session_id,
            "total_events": total,
            "error_events": errors,
            "sdk_events": sdk_events,
            "backend_events": total - sdk_events
        }
