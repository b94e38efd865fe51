"""Value objects for the retrieval-augmented generation pipeline."""

from dataclasses import dataclass, field
from typing import Any, Literal

from .document import DocumentFilter, SearchResult


@dataclass
class ChatMessage:
    """A single turn of conversation history.

    Attributes:
        role: "user" or "assistant".
        content: Message text.
    """

    role: str
    content: str


@dataclass
class RAGConfig:
    """Per-query pipeline configuration.

    Attributes:
        collection_name: Collection to retrieve from.
        top_k: Number of sources kept for the context.
        min_score: Drop candidates scoring below this value.
        reranking: Enable LLM relevance reranking.
        max_context_length: Character budget of the assembled context.
        query_expansion: Enable LLM query expansion.
        include_metadata: Include document metadata in streamed previews.
        metadata_filter: Predicate applied during hybrid search.
    """

    collection_name: str
    top_k: int = 5
    min_score: float | None = None
    reranking: bool = False
    max_context_length: int = 4000
    query_expansion: bool = False
    include_metadata: bool = False
    metadata_filter: DocumentFilter | None = None


@dataclass
class RAGContext:
    """Sources retrieved for a question."""

    sources: list[SearchResult]
    query: str
    enhanced_query: str | None = None


@dataclass
class Citation:
    """A fragment of a retrieved document likely referenced by the answer.

    Attributes:
        content: The fragment text.
        source: Provenance label of the document the fragment came from.
        relevance: Word-overlap ratio with the answer, in [0, 1].
    """

    content: str
    source: str
    relevance: float


@dataclass
class RAGResponse:
    """Final answer with its supporting context, citations and confidence."""

    answer: str
    context: RAGContext
    citations: list[Citation] = field(default_factory=list)
    confidence: float = 0.0


StreamEventType = Literal["context", "answer", "done"]


@dataclass
class StreamEvent:
    """One event of a streamed RAG response."""

    type: StreamEventType
    data: Any
