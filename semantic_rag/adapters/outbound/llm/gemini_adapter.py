"""Gemini chat adapter implementing the LLM port with the google-genai SDK."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from google import genai

from ....common.rate_limiter import RateLimiter
from ....core.domain import ChatMessage
from ....core.domain.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMRateLimitError,
    MissingAPIKeyError,
)
from ....core.ports.llm_port import LLMPort
from .._errors import is_rate_limit

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


class GeminiLLMAdapter(LLMPort):
    """Chat completions through the Gemini API.

    Conversation roles map onto Gemini's ``user``/``model`` roles; the
    system prompt is passed as the system instruction.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.3,
        max_tokens: int = 4096,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Google AI API key.
            model: Model name.
            temperature: Sampling temperature (0.0-1.0).
            max_tokens: Maximum output tokens.
            rate_limiter: Optional limiter applied before every call.
        """
        self.api_key = api_key
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        """Lazy load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise MissingAPIKeyError(
                    "Google API key not set. Get one at https://aistudio.google.com/ "
                    "and set GOOGLE_API_KEY in your .env file.",
                    context={"provider": "gemini", "model": self.model_name},
                )
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.info("Gemini client initialized for model: %s", self.model_name)
        return self._client

    @staticmethod
    def _contents(messages: list[ChatMessage]) -> list[Any]:
        from google.genai import types

        return [
            types.Content(
                role="model" if message.role in ("assistant", "model", "agent") else "user",
                parts=[types.Part(text=message.content)],
            )
            for message in messages
        ]

    def _config(self, system_prompt: str) -> Any:
        from google.genai import types

        return types.GenerateContentConfig(
            system_instruction=system_prompt or None,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
        )

    async def generate(self, system_prompt: str, messages: list[ChatMessage]) -> str:
        """Generate a complete response, retrying rate-limited calls.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            LLMRateLimitError: If the quota is still exhausted after retries.
            LLMConnectionError: If the provider cannot be reached.
            LLMGenerationError: For any other provider failure.
        """
        client = self._get_client()
        contents = self._contents(messages)
        config = self._config(system_prompt)

        for attempt in range(MAX_RETRIES):
            await self.rate_limiter.acquire()
            try:
                response = await client.aio.models.generate_content(
                    model=self.model_name,
                    contents=contents,
                    config=config,
                )
            except Exception as e:
                if is_rate_limit(e):
                    if attempt < MAX_RETRIES - 1:
                        wait_time = 2**attempt
                        logger.warning("Rate limit hit, retrying in %ss...", wait_time)
                        await asyncio.sleep(wait_time)
                        continue
                    raise LLMRateLimitError(
                        "Rate limit reached. Please wait a moment and try again.",
                        cause=e,
                        context={"model": self.model_name},
                    ) from e
                if isinstance(e, ConnectionError | TimeoutError):
                    raise LLMConnectionError(
                        f"Could not reach Gemini: {e}", cause=e, context={"model": self.model_name}
                    ) from e
                raise LLMGenerationError(
                    f"Gemini error: {e}", cause=e, context={"model": self.model_name}
                ) from e

            if not response.candidates:
                raise LLMGenerationError(
                    "Gemini returned no candidates (possibly filtered by safety settings)",
                    context={"model": self.model_name},
                )
            return response.text or ""

        raise LLMGenerationError("Failed to generate response after retries")

    async def generate_stream(
        self, system_prompt: str, messages: list[ChatMessage]
    ) -> AsyncIterator[str]:
        """Yield text chunks as they are generated."""
        client = self._get_client()
        await self.rate_limiter.acquire()

        try:
            stream = await client.aio.models.generate_content_stream(
                model=self.model_name,
                contents=self._contents(messages),
                config=self._config(system_prompt),
            )
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except Exception as e:
            if is_rate_limit(e):
                raise LLMRateLimitError(
                    "Rate limit reached. Please wait and try again.",
                    cause=e,
                    context={"model": self.model_name},
                ) from e
            raise LLMGenerationError(
                f"Gemini streaming error: {e}", cause=e, context={"model": self.model_name}
            ) from e
