"""Document data models."""
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple


def new_id() -> str:
    """Generate a unique identifier."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class PageText:
    """Plain text of one document page, as supplied by the extraction step."""

    page_number: int
    text: str


@dataclass(frozen=True)
class Chunk:
    """Represents a text chunk with metadata."""

    text: str
    page_number: int
    chunk_index: int
    document_id: str
    chunk_id: str = field(default_factory=new_id)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.page_number, self.chunk_index)


@dataclass
class Document:
    """Represents an ingested document.

    ``total_chunks`` stays ``None`` until chunking has completed and is then
    set exactly once by the document store.
    """

    document_id: str
    name: str
    total_pages: int
    total_chunks: Optional[int] = None
    status: str = "processing"

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"


@dataclass(frozen=True)
class Question:
    """A generated question anchored to the chunks it was produced from."""

    document_id: str
    question_text: str
    related_chunk_ids: Tuple[str, ...] = ()
    question_id: str = field(default_factory=new_id)
