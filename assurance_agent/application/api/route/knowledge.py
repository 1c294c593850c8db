from typing import Annotated
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
import structlog

from assurance_agent.application.api.dependencies import ServiceContainer, get_services
from assurance_agent.application.api.schema.requests import (
    BatchLoadError, BatchLoadRequest, BatchLoadResponse, DocumentCreateRequest,
    DocumentLoadResponse, DocumentListResponse, KnowledgeSearchRequest,
    KnowledgeSearchResponse, SearchResult, UrlLoadRequest
)
from assurance_agent.domain.context.memory.knowledge_base import DocumentLoadResult
from assurance_agent.domain.errors import DocumentFetchError, UnsupportedDocumentError
from assurance_agent.infrastructure.loaders.document_loader import decode_upload, load_url

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


def _load_response(result: DocumentLoadResult) -> DocumentLoadResponse:
    return DocumentLoadResponse(action=result.action, document=result.document, chunk_count=result.chunks)


async def _fetch(url: str, services: ServiceContainer):
    ingestion = services.settings.ingestion
    return await load_url(url, timeout=ingestion.url_timeout_seconds, max_bytes=ingestion.max_upload_bytes)


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(services: Annotated[ServiceContainer, Depends(get_services)]):
    documents = services.knowledge_base.list_documents()
    return DocumentListResponse(documents=documents, total=len(documents))


@router.post("/documents", response_model=DocumentLoadResponse)
async def add_document(
    request: DocumentCreateRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    """Add or replace a plain text document"""

    result = await services.knowledge_base.add_document(
        content=request.content,
        title=request.title,
        source=request.source,
        doc_type=request.type
    )
    return _load_response(result)


@router.post("/upload", response_model=DocumentLoadResponse)
async def upload_document(
    services: Annotated[ServiceContainer, Depends(get_services)],
    document: UploadFile = File(...)
):
    """Load an uploaded .txt, .md or .pdf file"""

    max_bytes = services.settings.ingestion.max_upload_bytes
    data = await document.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail=f"File exceeds {max_bytes} bytes")

    loaded = decode_upload(document.filename or "", data)
    result = await services.knowledge_base.add_document(**loaded)

    logger.info("Uploaded knowledge file", filename=document.filename, action=result.action)
    return _load_response(result)


@router.post("/load-url", response_model=DocumentLoadResponse)
async def load_from_url(
    request: UrlLoadRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    """Fetch a web page and add its text"""

    loaded = await _fetch(request.url, services)
    if request.title:
        loaded["title"] = request.title

    result = await services.knowledge_base.add_document(**loaded)
    return _load_response(result)


@router.post("/load-batch", response_model=BatchLoadResponse)
async def load_batch(
    request: BatchLoadRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    """Load several URLs one after another; failed pages are reported, not raised"""

    documents, errors = [], []
    for url in request.urls:
        try:
            loaded = await _fetch(url, services)
            result = await services.knowledge_base.add_document(**loaded)
        except (DocumentFetchError, UnsupportedDocumentError) as e:
            errors.append(BatchLoadError(source=url, error=str(e)))
            continue
        documents.append(_load_response(result))

    logger.info("Batch load complete", loaded=len(documents), failed=len(errors), total=len(request.urls))
    return BatchLoadResponse(
        success_count=len(documents),
        error_count=len(errors),
        documents=documents,
        errors=errors
    )


@router.post("/search", response_model=KnowledgeSearchResponse)
async def search_knowledge(
    request: KnowledgeSearchRequest,
    services: Annotated[ServiceContainer, Depends(get_services)]
):
    docs = await services.knowledge_base.search(request.query, k=request.limit)
    return KnowledgeSearchResponse(
        query=request.query,
        results=[SearchResult(content=doc.page_content, metadata=doc.metadata) for doc in docs],
        total_results=len(docs)
    )


@router.delete("/documents/{document_id}")
async def delete_document(document_id: str, services: Annotated[ServiceContainer, Depends(get_services)]):
    if not await services.knowledge_base.delete_document(document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return {"success": True, "document_id": document_id}
