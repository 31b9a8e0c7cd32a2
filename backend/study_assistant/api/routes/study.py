"""Question, answer, chat and summary endpoints backed by the generator."""
import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from study_assistant.api.dependencies import get_question_service, get_study_service
from study_assistant.api.errors import to_http_exception
from study_assistant.api.schemas import (
    AnswerRequest,
    AnswerResponse,
    ChatReplyResponse,
    ChatRequest,
    QuestionSchema,
    QuestionsRequest,
    QuestionsResponse,
    SummarizeRequest,
    SummaryResponse,
)
from study_assistant.exceptions import DocumentProcessingError, GeneratorError
from study_assistant.services.question_service import QuestionService
from study_assistant.services.study_service import StudyService
from study_assistant.utils.logger import logger

router = APIRouter()


@router.post("/questions", response_model=QuestionsResponse)
async def generate_questions(
    request: QuestionsRequest,
    question_service: QuestionService = Depends(get_question_service),
):
    """
    Generate exam questions for a document, or return the ones already generated.

    Args:
        request: QuestionsRequest with document id
        question_service: Question service instance

    Returns:
        QuestionsResponse with the stored questions
    """
    try:
        questions = await question_service.generate_questions(request.document_id)
    except DocumentProcessingError as e:
        logger.error(f"Error generating questions: {str(e)}")
        raise to_http_exception(e) from e

    return QuestionsResponse(
        questions=[
            QuestionSchema(
                id=question.question_id,
                document_id=question.document_id,
                question_text=question.question_text,
                related_chunk_ids=list(question.related_chunk_ids),
            )
            for question in questions
        ],
        message=None if questions else "No questions could be generated",
    )


@router.post("/answer", response_model=AnswerResponse)
async def answer_question(
    request: AnswerRequest,
    study_service: StudyService = Depends(get_study_service),
):
    """Answer a generated question from its anchored chunks."""
    try:
        result = await study_service.answer_question(request.question_id, request.document_id)
    except DocumentProcessingError as e:
        logger.error(f"Error answering question: {str(e)}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.error(f"Unexpected error answering question: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate answer")

    return AnswerResponse(
        answer=result.text,
        source_pages=result.retrieval.source_pages,
        chunk_count=result.retrieval.chunk_count,
    )


async def _sse_events(stream: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        async for delta in stream:
            yield f"data: {json.dumps({'delta': delta})}\n\n"
    except GeneratorError as e:
        yield f"data: {json.dumps({'error': str(e)})}\n\n"
    yield "data: [DONE]\n\n"


@router.post("/chat")
async def chat(
    request: ChatRequest,
    study_service: StudyService = Depends(get_study_service),
):
    """
    Chat about a document.

    Streams the reply as server-sent events carrying ``{"delta": ...}``
    payloads. When the document has no content the sentinel reply is
    returned as plain JSON instead.
    """
    history = [message.model_dump() for message in request.chat_history]
    try:
        reply = await study_service.open_chat(request.document_id, request.message, history)
    except DocumentProcessingError as e:
        logger.error(f"Error in chat: {str(e)}")
        raise to_http_exception(e) from e

    if reply.stream is None:
        return ChatReplyResponse(reply=reply.text, source_pages=[]).model_dump(by_alias=True)

    source_pages = ",".join(str(page) for page in reply.retrieval.source_pages)
    return StreamingResponse(
        _sse_events(reply.stream),
        media_type="text/event-stream",
        headers={"X-Source-Pages": source_pages},
    )


@router.post("/summarize", response_model=SummaryResponse)
async def summarize(
    request: SummarizeRequest,
    study_service: StudyService = Depends(get_study_service),
):
    """Summarize a document from an evenly sampled set of chunks."""
    try:
        result = await study_service.summarize_document(request.document_id, request.max_chunks)
    except DocumentProcessingError as e:
        logger.error(f"Error summarizing document: {str(e)}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.error(f"Unexpected error summarizing document: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate summary")

    return SummaryResponse(
        summary=result.text,
        source_pages=result.retrieval.source_pages,
        chunk_count=result.retrieval.chunk_count,
        total_chunks=result.retrieval.total_chunks,
    )
