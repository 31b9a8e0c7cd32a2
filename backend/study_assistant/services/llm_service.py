"""LLM service for an OpenAI-compatible chat completion API."""
import os
import time
from typing import AsyncIterator, Dict, List, Optional, Sequence

import httpx
import openai
from openai import AsyncOpenAI

from study_assistant.exceptions import (
    GeneratorCreditsExhaustedError,
    GeneratorError,
    GeneratorRateLimitError,
)
from study_assistant.prompts import AnswerPrompt, ChatPrompt, QuestionPrompt, SummaryPrompt
from study_assistant.utils.logger import logger
from study_assistant.utils.metrics import GENERATOR_ERRORS

RATE_LIMITED_MESSAGE = "Rate limited. Please try again in a moment."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add funds."


class LLMService:
    """Service for interacting with the text generator."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = "https://api.openai.com/v1/chat/completions",
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
    ):
        """
        Initialize LLM service.

        Args:
            api_key: Generator API key (from LLM_API_KEY env if not provided)
            api_url: Chat completions endpoint URL
            model: Model name to use
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or os.getenv("LLM_API_KEY")
        if not self.api_key:
            raise ValueError("LLM_API_KEY environment variable is required")

        self.api_url = api_url
        self.model = model
        # OpenAI SDK expects base URL without /chat/completions
        # https://api.example.com/v1/chat/completions -> https://api.example.com/v1
        base_url = api_url.split("/chat/completions")[0].rstrip("/")

        http_client = httpx.AsyncClient(timeout=timeout, trust_env=False)
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=base_url,
            http_client=http_client,
        )

    @staticmethod
    def _build_messages(system_prompt: str, messages: Sequence[Dict[str, str]]) -> List[Dict[str, str]]:
        return [{"role": "system", "content": system_prompt}, *messages]

    @staticmethod
    def _translate_error(error: Exception) -> GeneratorError:
        """Map SDK errors onto the generator error hierarchy."""
        status_code = getattr(error, "status_code", None)
        if isinstance(error, openai.RateLimitError) or status_code == 429:
            GENERATOR_ERRORS.labels(kind="rate_limited").inc()
            return GeneratorRateLimitError(RATE_LIMITED_MESSAGE)
        if status_code == 402:
            GENERATOR_ERRORS.labels(kind="credits_exhausted").inc()
            return GeneratorCreditsExhaustedError(CREDITS_EXHAUSTED_MESSAGE)

        GENERATOR_ERRORS.labels(kind="upstream").inc()
        return GeneratorError(f"AI gateway error: {str(error)}")

    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[Dict[str, str]],
        temperature: Optional[float] = None,
    ) -> str:
        """
        Run a chat completion and return the final text.

        Args:
            system_prompt: System instructions
            messages: Ordered user/assistant messages
            temperature: Optional sampling temperature

        Returns:
            Completion text ("" when the generator returned no content)

        Raises:
            GeneratorRateLimitError: On HTTP 429
            GeneratorCreditsExhaustedError: On HTTP 402
            GeneratorError: On any other upstream failure
        """
        start_time = time.time()
        params = {"model": self.model, "messages": self._build_messages(system_prompt, messages)}
        if temperature is not None:
            params["temperature"] = temperature

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APIError as e:
            logger.error(f"Error calling generator API: {str(e)}")
            raise self._translate_error(e) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        logger.info(
            "LLM response generated",
            extra={
                "llm_response_time": (time.time() - start_time) * 1000,
                "answer_length": len(content),
            },
        )
        return content

    async def open_stream(
        self, system_prompt: str, messages: Sequence[Dict[str, str]]
    ) -> AsyncIterator[str]:
        """
        Start a streamed chat completion.

        The request is sent before this coroutine returns, so upstream
        errors surface here rather than halfway through the stream.

        Returns:
            Async iterator over text deltas
        """
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(system_prompt, messages),
                stream=True,
            )
        except openai.APIError as e:
            logger.error(f"Error opening generator stream: {str(e)}")
            raise self._translate_error(e) from e

        return self._iter_deltas(stream)

    async def _iter_deltas(self, stream) -> AsyncIterator[str]:
        try:
            async for event in stream:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    yield delta
        except openai.APIError as e:
            logger.error(f"Generator stream interrupted: {str(e)}")
            raise self._translate_error(e) from e

    async def generate_answer(self, question_text: str, context: str) -> str:
        """Generate a structured answer to a question from its anchored context."""
        answer = await self.complete(
            AnswerPrompt.SYSTEM_MESSAGE,
            [{"role": "user", "content": AnswerPrompt.build(question_text, context)}],
        )
        return answer or "Unable to generate answer."

    async def summarize(
        self, document_name: str, total_pages: Optional[int], total_chunks: int, context: str
    ) -> str:
        """Generate a structured summary of a document from sampled context."""
        prompt = SummaryPrompt.build(document_name, total_pages, total_chunks, context)
        summary = await self.complete(
            SummaryPrompt.SYSTEM_MESSAGE, [{"role": "user", "content": prompt}]
        )
        return summary or "Unable to generate summary."

    async def generate_question_batch(self, batch_context: str) -> str:
        """Ask for exam questions about a batch of chunks; returns the raw reply."""
        return await self.complete(
            QuestionPrompt.SYSTEM_MESSAGE,
            [{"role": "user", "content": QuestionPrompt.build(batch_context)}],
        )

    async def open_chat_stream(
        self, message: str, context: str, chat_history: Sequence[Dict[str, str]] = ()
    ) -> AsyncIterator[str]:
        """Start a streamed chat reply grounded on the retrieved context."""
        messages = [*chat_history, {"role": "user", "content": ChatPrompt.build(message, context)}]
        return await self.open_stream(ChatPrompt.SYSTEM_MESSAGE, messages)

    async def close(self):
        """Close HTTP client."""
        await self.client.close()
