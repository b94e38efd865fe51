"""Embedding Port Interface."""

from abc import ABC, abstractmethod


class EmbeddingPort(ABC):
    """Abstract interface for embedding providers.

    Vectors returned by one provider instance always have the same length.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of the vectors this provider produces."""
        ...

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]: ...

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts, preserving input order."""
        ...
