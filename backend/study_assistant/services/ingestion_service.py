"""Ingestion service turning per-page text into stored chunks."""
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Sequence

from study_assistant.exceptions import (
    InvalidInputError,
    PageLimitExceededError,
    StorageError,
)
from study_assistant.models.document import Chunk, PageText
from study_assistant.services.chunk_store import ChunkStore
from study_assistant.services.chunker import chunk_page
from study_assistant.services.document_store import DocumentStore
from study_assistant.utils.logger import logger
from study_assistant.utils.metrics import CHUNKS_CREATED, DOCUMENTS_INGESTED, INGESTION_SECONDS
from study_assistant.utils.text_cleaner import normalize_page_text
from study_assistant.utils.tracer import traced


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of a successful ingestion."""

    document_id: str
    document_name: str
    total_pages: int
    total_chunks: int
    processing_time_seconds: float


class IngestionService:
    """Validates, chunks and stores a document's pages."""

    def __init__(
        self,
        chunk_store: ChunkStore,
        document_store: DocumentStore,
        batch_size: int = 50,
        max_workers: int = 0,
        max_pages: int = 1000,
    ):
        """
        Initialize ingestion service.

        Args:
            chunk_store: Store receiving the chunk batches
            document_store: Store receiving the document record
            batch_size: Number of chunks per append call (default: 50)
            max_workers: Max workers for parallel page chunking (0 = auto based on CPU cores)
            max_pages: Maximum number of pages accepted per document
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        self.chunk_store = chunk_store
        self.document_store = document_store
        self.batch_size = batch_size
        self.max_pages = max_pages

        available_cores = os.cpu_count() or 1
        self.max_workers = max_workers if max_workers > 0 else min(available_cores * 2, 16)

    @traced("ingest_document")
    def ingest_document(self, document_name: str, pages: Sequence[Any]) -> IngestionResult:
        """
        Ingest a document given as ordered page texts.

        Args:
            document_name: Display name of the document
            pages: PageText items (or ``{"pageNumber", "text"}`` mappings)

        Returns:
            IngestionResult with document id, page count and chunk count

        Raises:
            InvalidInputError: If the payload is missing or not page-shaped
            PageLimitExceededError: If the document has too many pages
            StorageError: If creating the document or appending chunks fails
        """
        start_time = time.time()
        page_texts = self._validate_pages(document_name, pages)

        try:
            document = self.document_store.create_document(
                name=document_name.strip(), total_pages=len(page_texts)
            )
        except Exception as e:
            DOCUMENTS_INGESTED.labels(outcome="failed").inc()
            raise StorageError(f"Failed to create document: {str(e)}") from e

        document_id = document.document_id
        chunks = self._chunk_pages(document_id, page_texts)

        try:
            self._store_chunks(document_id, chunks)
            self.document_store.mark_ready(document_id, len(chunks))
        except StorageError:
            self.document_store.mark_failed(document_id)
            DOCUMENTS_INGESTED.labels(outcome="failed").inc()
            raise

        processing_time = time.time() - start_time
        INGESTION_SECONDS.observe(processing_time)
        DOCUMENTS_INGESTED.labels(outcome="ready").inc()
        CHUNKS_CREATED.inc(len(chunks))

        if not chunks:
            logger.warning(
                f"Document {document_name} produced no chunks",
                extra={"document_id": document_id, "total_pages": len(page_texts)},
            )

        logger.info(
            f"Document ingested successfully: {document_id}",
            extra={
                "document_id": document_id,
                "total_pages": len(page_texts),
                "total_chunks": len(chunks),
                "processing_time_ms": processing_time * 1000,
            },
        )

        return IngestionResult(
            document_id=document_id,
            document_name=document.name,
            total_pages=len(page_texts),
            total_chunks=len(chunks),
            processing_time_seconds=processing_time,
        )

    def _validate_pages(self, document_name: str, pages: Sequence[Any]) -> List[PageText]:
        """Validate the payload before anything is written."""
        if not isinstance(document_name, str) or not document_name.strip():
            raise InvalidInputError("Missing documentName or pages array")
        if not isinstance(pages, (list, tuple)) or not pages:
            raise InvalidInputError("Missing documentName or pages array")
        if len(pages) > self.max_pages:
            raise PageLimitExceededError(
                f"Document has {len(pages)} pages, which exceeds the maximum of {self.max_pages} pages."
            )

        page_texts = [self._to_page_text(position, page) for position, page in enumerate(pages)]

        page_numbers = [page.page_number for page in page_texts]
        if len(set(page_numbers)) != len(page_numbers):
            raise InvalidInputError("Page numbers must be unique within a document")

        return page_texts

    @staticmethod
    def _to_page_text(position: int, page: Any) -> PageText:
        if isinstance(page, PageText):
            page_number, text = page.page_number, page.text
        elif isinstance(page, dict):
            page_number = page.get("pageNumber", page.get("page_number"))
            text = page.get("text")
        else:
            raise InvalidInputError(f"Page at position {position} is not a page object")

        if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
            raise InvalidInputError(f"Page at position {position} has an invalid page number")
        if not isinstance(text, str):
            raise InvalidInputError(f"Page {page_number} has no text")

        return PageText(page_number=page_number, text=text)

    def _chunk_pages(self, document_id: str, pages: Sequence[PageText]) -> List[Chunk]:
        """Chunk every page independently, in parallel when there are several pages."""

        def chunk_one(page: PageText) -> List[Chunk]:
            return chunk_page(document_id, page.page_number, normalize_page_text(page.text))

        if len(pages) == 1:
            page_chunks = [chunk_one(pages[0])]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(pages))) as executor:
                page_chunks = list(executor.map(chunk_one, pages))

        chunks = [chunk for chunks_of_page in page_chunks for chunk in chunks_of_page]
        logger.info(
            f"Created {len(chunks)} chunks from document {document_id}",
            extra={"document_id": document_id, "chunk_count": len(chunks)},
        )
        return chunks

    def _store_chunks(self, document_id: str, chunks: List[Chunk]) -> int:
        """Append chunks in fixed-size batches; any failed batch fails the ingestion."""
        stored_count = 0
        for batch_index, start in enumerate(range(0, len(chunks), self.batch_size)):
            batch = chunks[start:start + self.batch_size]
            try:
                stored_count += self.chunk_store.append_batch(batch)
            except Exception as e:
                logger.error(
                    f"Error inserting chunk batch {batch_index} for document {document_id}: {str(e)}",
                    extra={"document_id": document_id, "batch_index": batch_index},
                )
                raise StorageError(f"Failed to insert chunks: {str(e)}") from e

        logger.info(f"Successfully stored {stored_count} chunks for document {document_id}")
        return stored_count
