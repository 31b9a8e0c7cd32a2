"""Document ingestion endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from study_assistant.api.dependencies import get_ingestion_service, get_retrieval_service
from study_assistant.api.errors import to_http_exception
from study_assistant.api.schemas import DocumentResponse, IngestRequest, IngestResponse
from study_assistant.exceptions import DocumentProcessingError
from study_assistant.models.document import PageText
from study_assistant.services.ingestion_service import IngestionService
from study_assistant.services.retrieval_service import RetrievalService
from study_assistant.utils.logger import logger

router = APIRouter()


@router.post("/documents", response_model=IngestResponse)
def ingest_document(
    request: IngestRequest,
    ingestion_service: IngestionService = Depends(get_ingestion_service),
):
    """
    Chunk and store a document's page texts.

    Args:
        request: IngestRequest with document name and ordered pages
        ingestion_service: Ingestion service instance

    Returns:
        IngestResponse with document id, page count and chunk count
    """
    logger.info(f"Processing document: {request.document_name}, pages: {len(request.pages)}")
    pages = [PageText(page_number=page.page_number, text=page.text) for page in request.pages]

    try:
        result = ingestion_service.ingest_document(request.document_name, pages)
    except DocumentProcessingError as e:
        logger.error(f"Error ingesting document {request.document_name}: {str(e)}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.error(f"Unexpected error ingesting document: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to process document: {str(e)}")

    return IngestResponse(
        document_id=result.document_id,
        total_pages=result.total_pages,
        total_chunks=result.total_chunks,
    )


@router.get("/documents/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
):
    """Return a document's metadata and ingestion status."""
    document = retrieval_service.document_store.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    return DocumentResponse(
        document_id=document.document_id,
        name=document.name,
        total_pages=document.total_pages,
        total_chunks=document.total_chunks,
        status=document.status,
    )
