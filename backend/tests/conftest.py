"""Pytest configuration and fixtures."""
import os

# Keep the app self-contained during tests: no tracing exporter, no generator
os.environ["TRACING_ENABLED"] = "false"
os.environ["LLM_API_KEY"] = ""

from typing import List, Sequence
from unittest.mock import AsyncMock, Mock

import pytest

from study_assistant.models.document import Chunk, Question
from study_assistant.services.chunk_store import ChunkStore
from study_assistant.services.document_store import DocumentStore
from study_assistant.services.ingestion_service import IngestionService
from study_assistant.services.llm_service import LLMService
from study_assistant.services.retrieval_service import RetrievalService


def paragraph(fill: str, length: int) -> str:
    """A paragraph of exactly ``length`` characters without sentence terminators."""
    return fill * length


@pytest.fixture
def chunk_store():
    """Empty chunk store."""
    return ChunkStore(max_batch_size=50)


@pytest.fixture
def document_store():
    """Empty document store."""
    return DocumentStore()


@pytest.fixture
def ingestion_service(chunk_store, document_store):
    """Ingestion service writing to the test stores."""
    return IngestionService(chunk_store, document_store, batch_size=50, max_workers=4)


@pytest.fixture
def retrieval_service(chunk_store, document_store):
    """Retrieval service reading from the test stores."""
    return RetrievalService(chunk_store, document_store)


@pytest.fixture
def make_document(chunk_store, document_store):
    """Store a ready document whose chunks carry the given texts, one chunk per page."""

    def _make(texts: Sequence[str], name: str = "biology.pdf") -> List[Chunk]:
        document = document_store.create_document(name=name, total_pages=max(len(texts), 1))
        chunks = [
            Chunk(text=text, page_number=page, chunk_index=0, document_id=document.document_id)
            for page, text in enumerate(texts, 1)
        ]
        for start in range(0, len(chunks), 50):
            chunk_store.append_batch(chunks[start:start + 50])
        document_store.mark_ready(document.document_id, len(chunks))
        return chunks

    return _make


@pytest.fixture
def make_question(document_store):
    """Store a question anchored to the given chunk ids."""

    def _make(document_id: str, chunk_ids: Sequence[str] = (), text: str = "What is photosynthesis?") -> Question:
        question = Question(
            document_id=document_id,
            question_text=text,
            related_chunk_ids=tuple(chunk_ids),
        )
        document_store.add_questions([question])
        return question

    return _make


@pytest.fixture
def sample_pages():
    """Pages of a short biology handout."""
    return [
        {
            "pageNumber": 1,
            "text": (
                "Chapter 1\n\n"
                "Photosynthesis converts light energy into chemical energy stored in glucose.\n\n"
                "It takes place in the chloroplasts of plant cells and algae."
            ),
        },
        {
            "pageNumber": 2,
            "text": (
                "Cellular respiration releases the energy stored in glucose molecules.\n\n"
                "It happens in the mitochondria and produces ATP for the cell."
            ),
        },
    ]


@pytest.fixture
def mock_llm_service():
    """Mock generator service."""
    service = Mock(spec=LLMService)
    service.generate_answer = AsyncMock(return_value="## 📖 Definition\nTest answer.")
    service.summarize = AsyncMock(return_value="## 📚 Document Overview\nTest summary.")
    service.generate_question_batch = AsyncMock(
        return_value='["What is photosynthesis?", "Explain cellular respiration."]'
    )

    async def _deltas():
        for delta in ("Photosynthesis ", "uses light."):
            yield delta

    service.open_chat_stream = AsyncMock(side_effect=lambda *args, **kwargs: _deltas())
    service.close = AsyncMock()
    return service
