"""Retrieval endpoints returning generator context without calling the generator."""
from fastapi import APIRouter, Depends

from study_assistant.api.dependencies import get_retrieval_service
from study_assistant.api.errors import to_http_exception
from study_assistant.api.schemas import (
    ChatRetrievalRequest,
    ContextResponse,
    QuestionRetrievalRequest,
    SummaryContextResponse,
    SummaryRetrievalRequest,
)
from study_assistant.exceptions import DocumentProcessingError
from study_assistant.services.retrieval_service import RetrievalResult, RetrievalService

router = APIRouter()


def _context_response(result: RetrievalResult) -> ContextResponse:
    return ContextResponse(
        context=result.context,
        source_pages=result.source_pages,
        chunk_count=result.chunk_count,
        available=result.available,
    )


@router.post("/retrieve/question", response_model=ContextResponse)
def retrieve_for_question(
    request: QuestionRetrievalRequest,
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
):
    """Anchored context of a generated question."""
    try:
        result = retrieval_service.retrieve_for_question(request.question_id, request.document_id)
    except DocumentProcessingError as e:
        raise to_http_exception(e) from e
    return _context_response(result)


@router.post("/retrieve/chat", response_model=ContextResponse)
def retrieve_for_message(
    request: ChatRetrievalRequest,
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
):
    """Keyword-ranked context for a free-text message."""
    try:
        result = retrieval_service.retrieve_for_message(request.document_id, request.query_text)
    except DocumentProcessingError as e:
        raise to_http_exception(e) from e
    return _context_response(result)


@router.post("/retrieve/summary", response_model=SummaryContextResponse)
def retrieve_for_summary(
    request: SummaryRetrievalRequest,
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
):
    """Evenly sampled context covering the whole document."""
    try:
        result = retrieval_service.retrieve_for_summary(request.document_id, request.max_chunks)
    except DocumentProcessingError as e:
        raise to_http_exception(e) from e

    return SummaryContextResponse(
        context=result.context,
        source_pages=result.source_pages,
        chunk_count=result.chunk_count,
        available=result.available,
        total_chunks=result.total_chunks,
    )
