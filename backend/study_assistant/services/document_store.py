"""In-process store for document records and generated questions."""
import threading
from typing import Dict, List, Optional, Sequence

from study_assistant.exceptions import StorageError
from study_assistant.models.document import Document, Question, new_id


class DocumentStore:
    """Keeps document metadata and the questions generated for each document."""

    def __init__(self):
        self._documents: Dict[str, Document] = {}
        self._questions: Dict[str, Question] = {}
        self._questions_by_document: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def create_document(self, name: str, total_pages: int) -> Document:
        """Create a document record in the ``processing`` state."""
        document = Document(document_id=new_id(), name=name, total_pages=total_pages)
        with self._lock:
            self._documents[document.document_id] = document
        return document

    def get_document(self, document_id: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(document_id)

    def mark_ready(self, document_id: str, total_chunks: int) -> Document:
        """
        Record the chunk count once chunking finished and mark the document usable.

        Raises:
            StorageError: If the document is unknown or its chunk count is already set
        """
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                raise StorageError(f"Document {document_id} does not exist")
            if document.total_chunks is not None:
                raise StorageError(f"Chunk count for document {document_id} is already set")
            document.total_chunks = total_chunks
            document.status = "ready"
            return document

    def mark_failed(self, document_id: str) -> None:
        with self._lock:
            document = self._documents.get(document_id)
            if document is not None:
                document.status = "failed"

    def add_questions(self, questions: Sequence[Question]) -> List[Question]:
        with self._lock:
            for question in questions:
                self._questions[question.question_id] = question
                self._questions_by_document.setdefault(question.document_id, []).append(
                    question.question_id
                )
        return list(questions)

    def get_question(self, question_id: str) -> Optional[Question]:
        with self._lock:
            return self._questions.get(question_id)

    def get_questions(self, document_id: str) -> List[Question]:
        with self._lock:
            return [
                self._questions[question_id]
                for question_id in self._questions_by_document.get(document_id, ())
            ]
