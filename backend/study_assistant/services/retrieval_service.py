"""Retrieval service selecting the context handed to the generator."""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from study_assistant.exceptions import (
    DocumentNotFoundError,
    DocumentNotReadyError,
    QuestionNotFoundError,
)
from study_assistant.models.document import Chunk, Document
from study_assistant.services.chunk_store import ChunkStore
from study_assistant.services.document_store import DocumentStore
from study_assistant.services.sampler import DEFAULT_SUMMARY_MAX_CHUNKS, select_representative_chunks
from study_assistant.services.scorer import rank_chunks
from study_assistant.utils.logger import logger
from study_assistant.utils.metrics import RETRIEVALS
from study_assistant.utils.tracer import traced

NOT_AVAILABLE_MESSAGE = "This topic is not available in the uploaded document."

DEFAULT_CHAT_TOP_K = 8
DEFAULT_CHAT_FALLBACK_COUNT = 5


@dataclass(frozen=True)
class RetrievalResult:
    """Chunks selected for a request and the context built from them."""

    chunks: Tuple[Chunk, ...]
    context: str
    total_chunks: int

    @classmethod
    def from_chunks(
        cls, chunks: Sequence[Chunk], total_chunks: int, include_chunk_index: bool = True
    ) -> "RetrievalResult":
        if not chunks:
            return cls.not_available()
        return cls(
            chunks=tuple(chunks),
            context=format_context(chunks, include_chunk_index=include_chunk_index),
            total_chunks=total_chunks,
        )

    @classmethod
    def not_available(cls) -> "RetrievalResult":
        """Sentinel result for a document without any chunks."""
        return cls(chunks=(), context=NOT_AVAILABLE_MESSAGE, total_chunks=0)

    @property
    def available(self) -> bool:
        return bool(self.chunks)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def source_pages(self) -> List[int]:
        return source_pages(self.chunks)


def format_context(chunks: Sequence[Chunk], include_chunk_index: bool = True) -> str:
    """
    Join chunks into a page-annotated context string.

    Args:
        chunks: Selected chunks in the order they should appear
        include_chunk_index: Annotate each chunk with its index as well as its page

    Returns:
        ``[Page P, Chunk I]: text`` (or ``[Page P]: text``) entries separated by blank lines
    """
    if include_chunk_index:
        parts = [f"[Page {c.page_number}, Chunk {c.chunk_index}]: {c.text}" for c in chunks]
    else:
        parts = [f"[Page {c.page_number}]: {c.text}" for c in chunks]
    return "\n\n".join(parts)


def source_pages(chunks: Sequence[Chunk]) -> List[int]:
    """Sorted unique page numbers of the given chunks."""
    return sorted({chunk.page_number for chunk in chunks})


def select_for_query(
    query: str,
    chunks: Sequence[Chunk],
    top_k: int = DEFAULT_CHAT_TOP_K,
    fallback_count: int = DEFAULT_CHAT_FALLBACK_COUNT,
) -> List[Chunk]:
    """
    Pick the chunks most relevant to a free-text query.

    The top ``top_k`` chunks by keyword score are kept if their score is
    positive. When nothing matches, the first ``fallback_count`` chunks in
    document order are used instead, so a non-empty document never yields
    an empty selection.

    Args:
        query: Free-text query
        chunks: All chunks of the document in document order
        top_k: Maximum number of matching chunks
        fallback_count: Number of leading chunks used when nothing matches

    Returns:
        Selected chunks, best first
    """
    ranked = rank_chunks(query, chunks)
    relevant = [scored.chunk for scored in ranked[:top_k] if scored.score > 0]
    if relevant:
        return relevant
    return list(chunks[:fallback_count])


class RetrievalService:
    """Read-only retrieval over the chunk store for questions, chat and summaries."""

    def __init__(
        self,
        chunk_store: ChunkStore,
        document_store: DocumentStore,
        chat_top_k: int = DEFAULT_CHAT_TOP_K,
        chat_fallback_count: int = DEFAULT_CHAT_FALLBACK_COUNT,
        summary_max_chunks: int = DEFAULT_SUMMARY_MAX_CHUNKS,
    ):
        """
        Initialize retrieval service.

        Args:
            chunk_store: Store holding the document chunks
            document_store: Store holding document records and questions
            chat_top_k: Maximum chunks returned for a chat message (default: 8)
            chat_fallback_count: Leading chunks used when a message matches nothing (default: 5)
            summary_max_chunks: Default sampling budget for summaries (default: 60)
        """
        self.chunk_store = chunk_store
        self.document_store = document_store
        self.chat_top_k = chat_top_k
        self.chat_fallback_count = chat_fallback_count
        self.summary_max_chunks = summary_max_chunks

    def get_ready_document(self, document_id: str) -> Document:
        """
        Look up a document that finished ingestion.

        Raises:
            DocumentNotFoundError: If the document is unknown
            DocumentNotReadyError: If ingestion failed or is still running
        """
        document = self.document_store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        if not document.is_ready:
            raise DocumentNotReadyError(
                f"Document {document_id} is not available (status: {document.status})"
            )
        return document

    @traced("retrieve_for_question")
    def retrieve_for_question(self, question_id: str, document_id: str) -> RetrievalResult:
        """
        Retrieve the anchored context of a generated question.

        The question's anchor chunks are used when any of them still resolve
        to chunks of the document; otherwise every chunk of the document is
        returned in page order. The fallback is not capped.

        Args:
            question_id: Generated question identifier
            document_id: Owning document identifier

        Returns:
            RetrievalResult, or the sentinel result if the document has no chunks

        Raises:
            QuestionNotFoundError: If the question does not belong to the document
        """
        self.get_ready_document(document_id)
        question = self.document_store.get_question(question_id)
        if question is None or question.document_id != document_id:
            raise QuestionNotFoundError(f"Question {question_id} not found")

        anchored = [
            chunk
            for chunk in self.chunk_store.get_chunks_by_ids(question.related_chunk_ids)
            if chunk.document_id == document_id
        ]
        total_chunks = self.chunk_store.count(document_id)

        if anchored:
            selected = anchored
        else:
            if question.related_chunk_ids:
                logger.info(
                    f"Anchor set of question {question_id} is stale, using all chunks",
                    extra={"question_id": question_id, "document_id": document_id},
                )
            selected = self.chunk_store.get_document_chunks(document_id)

        result = RetrievalResult.from_chunks(selected, total_chunks)
        self._record("question", document_id, result)
        return result

    @traced("retrieve_for_message")
    def retrieve_for_message(self, document_id: str, query: str) -> RetrievalResult:
        """
        Retrieve context for a free-text chat message by keyword relevance.

        Args:
            document_id: Document identifier
            query: Chat message

        Returns:
            RetrievalResult, or the sentinel result if the document has no chunks
        """
        self.get_ready_document(document_id)
        chunks = self.chunk_store.get_document_chunks(document_id)
        selected = select_for_query(
            query, chunks, top_k=self.chat_top_k, fallback_count=self.chat_fallback_count
        )

        result = RetrievalResult.from_chunks(selected, len(chunks), include_chunk_index=False)
        self._record("chat", document_id, result)
        return result

    @traced("retrieve_for_summary")
    def retrieve_for_summary(
        self, document_id: str, max_chunks: Optional[int] = None
    ) -> RetrievalResult:
        """
        Retrieve an evenly sampled cross-section of the whole document.

        Args:
            document_id: Document identifier
            max_chunks: Sampling budget (defaults to summary_max_chunks)

        Returns:
            RetrievalResult with total_chunks set to the document's chunk count,
            or the sentinel result if the document has no chunks
        """
        self.get_ready_document(document_id)
        chunks = self.chunk_store.get_document_chunks(document_id)
        selected = select_representative_chunks(chunks, max_chunks or self.summary_max_chunks)

        result = RetrievalResult.from_chunks(selected, len(chunks))
        self._record("summary", document_id, result)
        return result

    def _record(self, mode: str, document_id: str, result: RetrievalResult) -> None:
        outcome = "found" if result.available else "not_available"
        RETRIEVALS.labels(mode=mode, outcome=outcome).inc()
        logger.info(
            f"Retrieved {result.chunk_count} chunks ({mode})",
            extra={
                "document_id": document_id,
                "retrieval_mode": mode,
                "chunk_count": result.chunk_count,
                "total_chunks": result.total_chunks,
                "source_pages": result.source_pages,
            },
        )
