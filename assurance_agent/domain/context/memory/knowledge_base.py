from typing import Dict, List, Any, Optional, Literal
from pydantic import BaseModel, Field
from datetime import datetime
import asyncio
import hashlib
import uuid
import structlog
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore
from langchain_text_splitters import RecursiveCharacterTextSplitter

from assurance_agent.domain.errors import UnsupportedDocumentError

logger = structlog.get_logger(__name__)


class KnowledgeDocument(BaseModel):
    """Tracking record for a document loaded into the knowledge base"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    source: str
    type: str = "text"
    content_hash: str
    chunk_ids: List[str] = Field(default_factory=list)
    loaded_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def chunk_count(self) -> int:
        return len(self.chunk_ids)


class DocumentLoadResult(BaseModel):
    """Outcome of loading one document"""
    action: Literal["added", "updated", "skipped"]
    document: KnowledgeDocument
    chunks: int = 0


class KnowledgeBase:
    """Shared documentation index searched by every session"""

    def __init__(self, embeddings: Embeddings, chunk_size: int = 1000, chunk_overlap: int = 200):
        self.index = InMemoryVectorStore(embedding=embeddings)
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=min(chunk_overlap, max(chunk_size - 1, 0)),
            separators=["\n\n", "\n", ". ", " ", ""]
        )
        self.documents: Dict[str, KnowledgeDocument] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def hash_content(content: str) -> str:
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def find_by_source(self, source: str) -> Optional[KnowledgeDocument]:
        for document in self.documents.values():
            if document.source == source:
                return document
        return None

    async def add_document(
        self,
        content: str,
        title: str,
        source: Optional[str] = None,
        doc_type: str = "text"
    ) -> DocumentLoadResult:
        """Chunk and index a document, replacing an older version of the same source"""

        if not content or not content.strip():
            raise UnsupportedDocumentError("Document content is empty")

        source = source or title
        content_hash = self.hash_content(content)

        async with self._lock:
            existing = self.find_by_source(source)

            if existing and existing.content_hash == content_hash:
                logger.info("Document unchanged, skipping", source=source, document_id=existing.id)
                return DocumentLoadResult(action="skipped", document=existing, chunks=existing.chunk_count)

            if existing:
                document = existing.model_copy(update={
                    "title": title,
                    "type": doc_type,
                    "content_hash": content_hash,
                    "updated_at": datetime.utcnow()
                })
                action = "updated"
            else:
                document = KnowledgeDocument(title=title, source=source, type=doc_type, content_hash=content_hash)
                action = "added"

            # Fresh chunk ids per version; the old version stays live until the new one is indexed
            version = uuid.uuid4().hex[:8]
            chunks = self._chunk(content, document)
            chunk_ids = [f"{document.id}:{version}:{i}" for i in range(len(chunks))]
            await self.index.aadd_documents(chunks, ids=chunk_ids)

            if existing:
                await self.index.adelete(existing.chunk_ids)

            document.chunk_ids = chunk_ids
            self.documents[document.id] = document

        logger.info(
            "Loaded knowledge document",
            action=action,
            title=title,
            source=source,
            chunks=len(chunk_ids)
        )
        return DocumentLoadResult(action=action, document=document, chunks=len(chunk_ids))

    def _chunk(self, content: str, document: KnowledgeDocument) -> List[Document]:
        texts = self.splitter.split_text(content)
        return [
            Document(
                page_content=text,
                metadata={
                    "title": document.title,
                    "source": document.source,
                    "document_id": document.id,
                    "chunk_index": i,
                    "type": document.type
                }
            )
            for i, text in enumerate(texts)
        ]

    async def delete_document(self, document_id: str) -> bool:
        """Remove a document and all its chunks"""

        async with self._lock:
            document = self.documents.pop(document_id, None)
            if document is None:
                return False
            await self.index.adelete(document.chunk_ids)

        logger.info("Deleted knowledge document", document_id=document_id, title=document.title)
        return True

    def list_documents(self) -> List[KnowledgeDocument]:
        return list(self.documents.values())

    async def search(self, query: str, k: int = 3) -> List[Document]:
        """Top-k chunks for a query"""

        if k <= 0 or not self.documents:
            return []
        return await self.index.asimilarity_search(query, k=k)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "documents": len(self.documents),
            "chunks": sum(d.chunk_count for d in self.documents.values())
        }
