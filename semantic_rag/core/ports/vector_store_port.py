"""Vector Store Port Interface."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain import Collection, Document, DocumentFilter, SearchResult


class VectorStorePort(ABC):
    """Abstract interface for collection-scoped vector stores."""

    @abstractmethod
    def create_collection(self, name: str, dimensions: int | None = None) -> Collection: ...

    @abstractmethod
    def delete_collection(self, name: str) -> bool: ...

    @abstractmethod
    def list_collections(self) -> list[str]: ...

    @abstractmethod
    def get_collection_stats(self, name: str) -> dict[str, int] | None: ...

    @abstractmethod
    async def add_document(
        self,
        collection_name: str,
        doc_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
        embedding: list[float] | None = None,
    ) -> Document:
        """Add one document, embedding its content when no vector is supplied."""
        ...

    @abstractmethod
    async def add_documents(
        self, collection_name: str, documents: list[dict[str, Any]]
    ) -> list[Document]:
        """Batch-embed and add documents given as {id, content, metadata?} dicts."""
        ...

    @abstractmethod
    def get_document(self, collection_name: str, doc_id: str) -> Document | None: ...

    @abstractmethod
    def delete_document(self, collection_name: str, doc_id: str) -> bool: ...

    @abstractmethod
    async def search(
        self,
        collection_name: str,
        query: str,
        k: int = 10,
        filter: DocumentFilter | None = None,
    ) -> list[SearchResult]:
        """Embed the query and run a semantic search."""
        ...

    @abstractmethod
    def search_by_vector(
        self,
        collection_name: str,
        embedding: list[float],
        k: int = 10,
        filter: DocumentFilter | None = None,
    ) -> list[SearchResult]: ...

    @abstractmethod
    async def hybrid_search(
        self,
        collection_name: str,
        query: str,
        k: int = 10,
        semantic_weight: float = 0.7,
        keyword_weight: float = 0.3,
        filter: DocumentFilter | None = None,
    ) -> list[SearchResult]:
        """Fuse semantic and lexical scores."""
        ...
