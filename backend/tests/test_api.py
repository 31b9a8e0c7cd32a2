"""Tests for API endpoints."""
import pytest
from fastapi.testclient import TestClient

from study_assistant.api.dependencies import get_llm_service
from study_assistant.exceptions import GeneratorError, GeneratorRateLimitError
from study_assistant.main import app
from study_assistant.services.llm_service import RATE_LIMITED_MESSAGE
from study_assistant.services.retrieval_service import NOT_AVAILABLE_MESSAGE


@pytest.fixture
def client():
    """Create test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def llm_client(client, mock_llm_service):
    """Test client whose generator is replaced by a mock."""
    app.dependency_overrides[get_llm_service] = lambda: mock_llm_service
    yield client
    app.dependency_overrides.clear()


def ingest(client, pages, name="biology.pdf"):
    response = client.post("/api/documents", json={"documentName": name, "pages": pages})
    assert response.status_code == 200, response.text
    return response.json()["documentId"]


EMPTY_PAGES = [{"pageNumber": 1, "text": "Page 1\n\n2024"}]


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMetricsEndpoint:
    """Tests for metrics endpoint."""

    def test_metrics_endpoint(self, client, sample_pages):
        """Test that ingestion counters are exported."""
        ingest(client, sample_pages)

        response = client.get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "study_assistant_documents_ingested_total" in response.text


class TestDocumentsEndpoint:
    """Tests for document ingestion endpoints."""

    def test_ingest_document(self, client, sample_pages):
        """Test ingesting page texts."""
        response = client.post("/api/documents", json={"documentName": "biology.pdf", "pages": sample_pages})

        assert response.status_code == 200
        data = response.json()
        assert data["totalPages"] == 2
        assert data["totalChunks"] == 2
        assert data["message"] == "Document processed successfully"
        assert data["documentId"]

    def test_ingest_accepts_snake_case(self, client):
        pages = [{"page_number": 1, "text": "A paragraph that is comfortably longer than thirty characters."}]
        response = client.post("/api/documents", json={"document_name": "notes", "pages": pages})

        assert response.status_code == 200
        assert response.json()["totalChunks"] == 1

    def test_ingest_without_pages(self, client):
        response = client.post("/api/documents", json={"documentName": "notes.pdf", "pages": []})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing documentName or pages array"

    def test_ingest_duplicate_pages(self, client):
        pages = [{"pageNumber": 1, "text": "one"}, {"pageNumber": 1, "text": "two"}]
        response = client.post("/api/documents", json={"documentName": "notes.pdf", "pages": pages})
        assert response.status_code == 400

    def test_ingest_malformed_payload(self, client):
        assert client.post("/api/documents", json={"documentName": "notes.pdf"}).status_code == 422
        response = client.post(
            "/api/documents",
            json={"documentName": "notes.pdf", "pages": [{"pageNumber": 0, "text": "x"}]},
        )
        assert response.status_code == 422

    def test_get_document(self, client, sample_pages):
        document_id = ingest(client, sample_pages)

        response = client.get(f"/api/documents/{document_id}")

        assert response.status_code == 200
        assert response.json() == {
            "documentId": document_id,
            "name": "biology.pdf",
            "totalPages": 2,
            "totalChunks": 2,
            "status": "ready",
        }

    def test_get_unknown_document(self, client):
        response = client.get("/api/documents/does-not-exist")
        assert response.status_code == 404


class TestRetrievalEndpoints:
    """Tests for context retrieval endpoints."""

    def test_chat_context(self, client, sample_pages):
        document_id = ingest(client, sample_pages)

        response = client.post(
            "/api/retrieve/chat",
            json={"documentId": document_id, "queryText": "Where does respiration happen?"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["sourcePages"] == [2]
        assert data["chunkCount"] == 1
        assert data["available"] is True
        assert data["context"].startswith("[Page 2]: Cellular respiration")

    def test_summary_context(self, client, sample_pages):
        document_id = ingest(client, sample_pages)

        response = client.post("/api/retrieve/summary", json={"documentId": document_id, "maxChunks": 1})

        data = response.json()
        assert data["chunkCount"] == 1
        assert data["totalChunks"] == 2
        assert data["context"].startswith("[Page 1, Chunk 0]: Photosynthesis")

    def test_empty_document_context_is_sentinel(self, client):
        document_id = ingest(client, EMPTY_PAGES)

        response = client.post(
            "/api/retrieve/chat", json={"documentId": document_id, "queryText": "anything"}
        )

        data = response.json()
        assert data["context"] == NOT_AVAILABLE_MESSAGE
        assert data["available"] is False
        assert data["sourcePages"] == []

    def test_unknown_document(self, client):
        response = client.post("/api/retrieve/summary", json={"documentId": "missing"})
        assert response.status_code == 404

    def test_unknown_question(self, client, sample_pages):
        document_id = ingest(client, sample_pages)

        response = client.post(
            "/api/retrieve/question", json={"documentId": document_id, "questionId": "missing"}
        )
        assert response.status_code == 404


class TestStudyEndpoints:
    """Tests for generator-backed endpoints."""

    def test_questions_then_answer(self, llm_client, sample_pages, mock_llm_service):
        """Test generating questions and answering one from its anchored context."""
        document_id = ingest(llm_client, sample_pages)

        response = llm_client.post("/api/questions", json={"documentId": document_id})
        assert response.status_code == 200
        questions = response.json()["questions"]
        assert [q["questionText"] for q in questions] == [
            "What is photosynthesis?",
            "Explain cellular respiration.",
        ]
        assert len(questions[0]["relatedChunkIds"]) == 2

        question_id = questions[0]["id"]
        context = llm_client.post(
            "/api/retrieve/question", json={"documentId": document_id, "questionId": question_id}
        ).json()
        assert context["sourcePages"] == [1, 2]

        response = llm_client.post("/api/answer", json={"documentId": document_id, "questionId": question_id})
        assert response.status_code == 200
        assert response.json()["answer"].startswith("## 📖 Definition")
        assert response.json()["sourcePages"] == [1, 2]
        mock_llm_service.generate_answer.assert_awaited_once()

    def test_questions_for_empty_document(self, llm_client):
        document_id = ingest(llm_client, EMPTY_PAGES)

        response = llm_client.post("/api/questions", json={"documentId": document_id})
        assert response.status_code == 404

    def test_chat_streams_deltas(self, llm_client, sample_pages):
        document_id = ingest(llm_client, sample_pages)

        response = llm_client.post(
            "/api/chat",
            json={"documentId": document_id, "message": "Explain photosynthesis"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["x-source-pages"] == "1"
        assert 'data: {"delta": "Photosynthesis "}' in response.text
        assert response.text.endswith("data: [DONE]\n\n")

    def test_chat_stream_error_event(self, llm_client, sample_pages, mock_llm_service):
        async def failing_deltas():
            yield "Partial"
            raise GeneratorError("AI gateway error: connection reset")

        mock_llm_service.open_chat_stream.side_effect = lambda *args, **kwargs: failing_deltas()
        document_id = ingest(llm_client, sample_pages)

        response = llm_client.post("/api/chat", json={"documentId": document_id, "message": "photosynthesis"})

        assert 'data: {"delta": "Partial"}' in response.text
        assert '"error": "AI gateway error: connection reset"' in response.text
        assert response.text.endswith("data: [DONE]\n\n")

    def test_chat_on_empty_document(self, llm_client, mock_llm_service):
        document_id = ingest(llm_client, EMPTY_PAGES)

        response = llm_client.post("/api/chat", json={"documentId": document_id, "message": "hello"})

        assert response.status_code == 200
        assert response.json() == {"reply": NOT_AVAILABLE_MESSAGE, "sourcePages": []}
        mock_llm_service.open_chat_stream.assert_not_awaited()

    def test_chat_control_characters(self, llm_client):
        response = llm_client.post(
            "/api/chat",
            content=b'{"documentId": "d", "message": "hi\x01there"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "json_parse_error"

    def test_summarize(self, llm_client, sample_pages, mock_llm_service):
        document_id = ingest(llm_client, sample_pages)

        response = llm_client.post("/api/summarize", json={"documentId": document_id})

        assert response.status_code == 200
        data = response.json()
        assert data["summary"].startswith("## 📚 Document Overview")
        assert data["chunkCount"] == 2
        assert data["totalChunks"] == 2

    def test_rate_limited_generator(self, llm_client, sample_pages, mock_llm_service):
        mock_llm_service.summarize.side_effect = GeneratorRateLimitError(RATE_LIMITED_MESSAGE)
        document_id = ingest(llm_client, sample_pages)

        response = llm_client.post("/api/summarize", json={"documentId": document_id})

        assert response.status_code == 429
        assert response.json()["detail"] == RATE_LIMITED_MESSAGE

    def test_generator_not_configured(self, client, sample_pages):
        """Test that generation is unavailable without an API key while retrieval still works."""
        document_id = ingest(client, sample_pages)

        response = client.post("/api/summarize", json={"documentId": document_id})
        assert response.status_code == 503

        response = client.post("/api/retrieve/summary", json={"documentId": document_id})
        assert response.status_code == 200
