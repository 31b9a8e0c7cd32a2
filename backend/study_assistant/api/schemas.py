"""Pydantic schemas for API requests and responses."""
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while accepting snake_case too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageInput(CamelModel):
    """Plain text of one page."""

    page_number: int = Field(..., ge=1, description="1-based page number")
    text: str = Field(..., description="Extracted page text")


class IngestRequest(CamelModel):
    """Request schema for document ingestion."""

    document_name: str = Field(..., description="Display name of the document")
    pages: List[PageInput] = Field(..., description="Ordered page texts")


class IngestResponse(CamelModel):
    """Response schema for document ingestion."""

    document_id: str = Field(..., description="Unique identifier for the ingested document")
    total_pages: int = Field(..., description="Number of pages submitted")
    total_chunks: int = Field(..., description="Number of chunks created")
    message: str = Field(default="Document processed successfully")


class DocumentResponse(CamelModel):
    """Document metadata."""

    document_id: str
    name: str
    total_pages: int
    total_chunks: Optional[int] = None
    status: str


class QuestionRetrievalRequest(CamelModel):
    question_id: str = Field(..., min_length=1)
    document_id: str = Field(..., min_length=1)


class ChatRetrievalRequest(CamelModel):
    document_id: str = Field(..., min_length=1)
    query_text: str = Field(..., description="Free-text query")


class SummaryRetrievalRequest(CamelModel):
    document_id: str = Field(..., min_length=1)
    max_chunks: Optional[int] = Field(None, ge=1, description="Sampling budget (default: 60)")


class ContextResponse(CamelModel):
    """Retrieved context handed to the generator."""

    context: str = Field(..., description="Page-annotated context or the sentinel text")
    source_pages: List[int] = Field(..., description="Sorted unique page numbers")
    chunk_count: int = Field(..., description="Number of chunks in the context")
    available: bool = Field(..., description="False when the document has no content")


class SummaryContextResponse(ContextResponse):
    total_chunks: int = Field(..., description="Number of chunks in the whole document")


class QuestionsRequest(CamelModel):
    document_id: str = Field(..., min_length=1)


class QuestionSchema(CamelModel):
    id: str
    document_id: str
    question_text: str
    related_chunk_ids: List[str]


class QuestionsResponse(CamelModel):
    questions: List[QuestionSchema]
    message: Optional[str] = None


class AnswerRequest(QuestionRetrievalRequest):
    """Request schema for answering a generated question."""


class AnswerResponse(CamelModel):
    answer: str
    source_pages: List[int]
    chunk_count: int


class ChatHistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    """Request schema for chatting about a document."""

    document_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, description="Student message")
    chat_history: List[ChatHistoryMessage] = Field(default_factory=list)

    @field_validator("message")
    @classmethod
    def clean_message(cls, v: str) -> str:
        """
        Clean message by removing invalid control characters.

        Args:
            v: Raw message string

        Returns:
            Cleaned message string
        """
        # Keep \n, \t and \r
        cleaned = re.sub(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]", "", v).strip()
        if not cleaned:
            raise ValueError("Message cannot be empty after cleaning")
        return cleaned


class ChatReplyResponse(CamelModel):
    """Non-streamed chat reply, used when the document has no content."""

    reply: str
    source_pages: List[int]


class SummarizeRequest(SummaryRetrievalRequest):
    """Request schema for summarizing a document."""


class SummaryResponse(CamelModel):
    summary: str
    source_pages: List[int]
    chunk_count: int
    total_chunks: int
