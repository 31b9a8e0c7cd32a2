"""Question generation service producing anchored exam questions."""
import asyncio
import json
import re
from typing import List, Sequence

from study_assistant.exceptions import (
    DocumentEmptyError,
    GeneratorCreditsExhaustedError,
    GeneratorError,
    GeneratorRateLimitError,
)
from study_assistant.models.document import Chunk, Question
from study_assistant.services.llm_service import LLMService
from study_assistant.services.retrieval_service import RetrievalService
from study_assistant.utils.logger import logger

# Generated questions must be longer than this to be kept
MIN_QUESTION_CHARS = 10

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def format_batch(chunks: Sequence[Chunk]) -> str:
    """Number a batch of chunks for the question prompt."""
    return "\n\n".join(
        f"[Chunk {position}, Page {chunk.page_number}]: {chunk.text}"
        for position, chunk in enumerate(chunks, 1)
    )


def parse_questions(reply: str) -> List[str]:
    """
    Extract question strings from a generator reply.

    The first ``[`` ... last ``]`` span is parsed as JSON; non-string entries
    and entries of MIN_QUESTION_CHARS characters or fewer are dropped.

    Raises:
        ValueError: If the reply holds no parseable JSON array
    """
    match = _JSON_ARRAY.search(reply)
    if match is None:
        raise ValueError("No JSON array in generator reply")

    parsed = json.loads(match.group(0))
    if not isinstance(parsed, list):
        raise ValueError("Generator reply is not a JSON array")

    questions = []
    for item in parsed:
        if isinstance(item, str) and len(item.strip()) > MIN_QUESTION_CHARS:
            questions.append(item.strip())
    return questions


class QuestionService:
    """Generates exam questions per batch of chunks and stores them with their anchors."""

    def __init__(
        self,
        retrieval_service: RetrievalService,
        llm_service: LLMService,
        batch_size: int = 15,
        rate_limit_backoff_seconds: float = 2.0,
    ):
        """
        Initialize question service.

        Args:
            retrieval_service: Retrieval service giving access to the stores
            llm_service: Generator used to write the questions
            batch_size: Chunks per generator request (default: 15)
            rate_limit_backoff_seconds: Pause after a rate-limited batch before moving on
        """
        self.retrieval_service = retrieval_service
        self.llm_service = llm_service
        self.batch_size = batch_size
        self.rate_limit_backoff_seconds = rate_limit_backoff_seconds

    async def generate_questions(self, document_id: str) -> List[Question]:
        """
        Return the document's questions, generating them on first request.

        Each batch's questions are anchored to the ids of the chunks in that
        batch. Rate-limited or failed batches are skipped; an exhausted
        credit balance aborts the whole request.

        Args:
            document_id: Document identifier

        Returns:
            Stored questions (possibly empty if the generator produced none)

        Raises:
            DocumentEmptyError: If the document has no chunks
            GeneratorCreditsExhaustedError: If the generator is billing-blocked
        """
        self.retrieval_service.get_ready_document(document_id)
        document_store = self.retrieval_service.document_store

        existing = document_store.get_questions(document_id)
        if existing:
            logger.info(
                f"Returning {len(existing)} cached questions",
                extra={"document_id": document_id},
            )
            return existing

        chunks = self.retrieval_service.chunk_store.get_document_chunks(document_id)
        if not chunks:
            raise DocumentEmptyError("No chunks found for this document")

        logger.info(
            f"Found {len(chunks)} chunks, generating questions...",
            extra={"document_id": document_id, "chunk_count": len(chunks)},
        )

        questions: List[Question] = []
        for batch_index, start in enumerate(range(0, len(chunks), self.batch_size)):
            batch = chunks[start:start + self.batch_size]
            try:
                reply = await self.llm_service.generate_question_batch(format_batch(batch))
            except GeneratorCreditsExhaustedError:
                raise
            except GeneratorRateLimitError:
                logger.warning(
                    f"Rate limited on question batch {batch_index}, skipping",
                    extra={"document_id": document_id, "batch_index": batch_index},
                )
                await asyncio.sleep(self.rate_limit_backoff_seconds)
                continue
            except GeneratorError as e:
                logger.error(
                    f"Question batch {batch_index} failed: {str(e)}",
                    extra={"document_id": document_id, "batch_index": batch_index},
                )
                continue

            try:
                texts = parse_questions(reply)
            except ValueError as e:
                logger.error(
                    f"Failed to parse questions: {str(e)}",
                    extra={"document_id": document_id, "batch_index": batch_index},
                )
                continue

            anchor_ids = tuple(chunk.chunk_id for chunk in batch)
            questions.extend(
                Question(document_id=document_id, question_text=text, related_chunk_ids=anchor_ids)
                for text in texts
            )

        logger.info(
            f"Generated {len(questions)} questions total",
            extra={"document_id": document_id},
        )
        return document_store.add_questions(questions)
