"""Study service orchestrating retrieval and generation."""
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional, Sequence

from study_assistant.services.llm_service import LLMService
from study_assistant.services.retrieval_service import (
    NOT_AVAILABLE_MESSAGE,
    RetrievalResult,
    RetrievalService,
)
from study_assistant.utils.logger import logger


@dataclass(frozen=True)
class GeneratedText:
    """Generator output together with the retrieval it was grounded on."""

    text: str
    retrieval: RetrievalResult


@dataclass(frozen=True)
class ChatReply:
    """A chat reply: either a live delta stream or the sentinel text."""

    retrieval: RetrievalResult
    stream: Optional[AsyncIterator[str]] = None

    @property
    def text(self) -> Optional[str]:
        return None if self.stream is not None else NOT_AVAILABLE_MESSAGE


class StudyService:
    """Answers questions, chats and summarizes using retrieved document context."""

    def __init__(
        self,
        retrieval_service: RetrievalService,
        llm_service: LLMService,
        chat_history_limit: int = 6,
    ):
        """
        Initialize study service.

        Args:
            retrieval_service: Retrieval service selecting the context
            llm_service: Generator collaborator
            chat_history_limit: Number of most recent history messages forwarded to the generator
        """
        self.retrieval_service = retrieval_service
        self.llm_service = llm_service
        self.chat_history_limit = chat_history_limit

    async def answer_question(self, question_id: str, document_id: str) -> GeneratedText:
        """Answer a generated question from its anchored context."""
        retrieval = self.retrieval_service.retrieve_for_question(question_id, document_id)
        if not retrieval.available:
            return GeneratedText(text=NOT_AVAILABLE_MESSAGE, retrieval=retrieval)

        question = self.retrieval_service.document_store.get_question(question_id)
        answer = await self.llm_service.generate_answer(question.question_text, retrieval.context)
        logger.info(
            "Answer generated",
            extra={"question_id": question_id, "document_id": document_id, "answer_length": len(answer)},
        )
        return GeneratedText(text=answer, retrieval=retrieval)

    async def open_chat(
        self,
        document_id: str,
        message: str,
        chat_history: Sequence[Dict[str, str]] = (),
    ) -> ChatReply:
        """
        Retrieve context for a chat message and open the generator stream.

        The generator is not called when the document has no chunks.
        """
        retrieval = self.retrieval_service.retrieve_for_message(document_id, message)
        if not retrieval.available:
            return ChatReply(retrieval=retrieval)

        history = self._trim_history(chat_history)
        stream = await self.llm_service.open_chat_stream(message, retrieval.context, history)
        return ChatReply(retrieval=retrieval, stream=stream)

    async def summarize_document(
        self, document_id: str, max_chunks: Optional[int] = None
    ) -> GeneratedText:
        """Summarize a document from an evenly sampled set of its chunks."""
        document = self.retrieval_service.get_ready_document(document_id)
        retrieval = self.retrieval_service.retrieve_for_summary(document_id, max_chunks)
        if not retrieval.available:
            return GeneratedText(text=NOT_AVAILABLE_MESSAGE, retrieval=retrieval)

        summary = await self.llm_service.summarize(
            document.name, document.total_pages, retrieval.total_chunks, retrieval.context
        )
        return GeneratedText(text=summary, retrieval=retrieval)

    def _trim_history(self, chat_history: Sequence[Dict[str, str]]) -> List[Dict[str, str]]:
        if self.chat_history_limit <= 0:
            return []
        return [
            {"role": message["role"], "content": message["content"]}
            for message in list(chat_history)[-self.chat_history_limit:]
        ]
