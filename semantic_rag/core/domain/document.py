"""Document, collection and search result models for the vector store."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Document:
    """A stored piece of text with its embedding and provenance.

    Documents are immutable once created. Editing means deleting the
    document and inserting it again under the same id.

    Attributes:
        id: Identifier, unique within its collection.
        content: The text content.
        embedding: Vector of length equal to the collection's dimensions.
        metadata: Open key-value provenance (filePath, title, language, ...).
        created_at: Insertion timestamp.
    """

    id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def source(self) -> str | None:
        """Best human-readable provenance label, if the metadata has one."""
        return self.metadata.get("filePath") or self.metadata.get("title")


@dataclass
class Collection:
    """A named set of documents sharing one embedding dimension.

    Attributes:
        name: Unique collection name.
        dimensions: Embedding length every document must have.
        documents: Map of document id to Document.
        created_at: Creation timestamp.
    """

    name: str
    dimensions: int
    documents: dict[str, Document] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def __len__(self) -> int:
        return len(self.documents)


@dataclass
class SearchResult:
    """A search hit with similarity score and distance.

    Attributes:
        document: The matched Document.
        score: Similarity, higher is better.
        distance: Euclidean distance, lower is better. 0 for lexical and fused hits.
    """

    document: Document
    score: float
    distance: float = 0.0


DocumentFilter = Callable[[Document], bool]
