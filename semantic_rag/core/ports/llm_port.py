"""LLM Port Interface."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from ..domain import ChatMessage


class LLMPort(ABC):
    """Abstract interface for chat-completion providers."""

    @abstractmethod
    async def generate(self, system_prompt: str, messages: list[ChatMessage]) -> str:
        """Generate a complete response."""
        ...

    @abstractmethod
    def generate_stream(
        self, system_prompt: str, messages: list[ChatMessage]
    ) -> AsyncIterator[str]:
        """Generate a response as a stream of text chunks."""
        ...
