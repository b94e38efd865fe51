"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ....core.domain import Citation, Document, DocumentFilter, SearchResult


def metadata_filter(match: dict[str, Any] | None) -> DocumentFilter | None:
    """Equality predicate over document metadata, or None for no filter."""
    if not match:
        return None

    def predicate(doc: Document) -> bool:
        return all(doc.metadata.get(key) == value for key, value in match.items())

    return predicate


class ChatMessageModel(BaseModel):
    """A single message in the chat history."""

    role: str = Field(..., description="Role of the message sender (user, assistant)")
    content: str = Field(..., description="Content of the message")


class CreateCollectionRequest(BaseModel):
    """Request model for creating a collection."""

    name: str = Field(..., min_length=1, max_length=256, description="Collection name")
    dimensions: int | None = Field(
        None, gt=0, description="Embedding length; defaults to the embedding provider's"
    )


class CollectionInfo(BaseModel):
    """Collection statistics."""

    name: str
    count: int = Field(..., ge=0, description="Number of documents")
    dimensions: int = Field(..., gt=0, description="Embedding length")


class AddDocumentRequest(BaseModel):
    """A document to add. The content is embedded when no vector is given."""

    id: str = Field(..., min_length=1)
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float] | None = None


class AddDocumentsRequest(BaseModel):
    """Batch of documents to add."""

    documents: list[AddDocumentRequest] = Field(..., min_length=1)


class DocumentModel(BaseModel):
    """A stored document, without its embedding."""

    id: str
    content: str
    metadata: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_domain(cls, document: Document) -> "DocumentModel":
        return cls(
            id=document.id,
            content=document.content,
            metadata=document.metadata,
            created_at=document.created_at,
        )


class SearchRequest(BaseModel):
    """Semantic, vector or hybrid search request.

    Give either ``query`` (text) or ``embedding`` (raw vector). ``hybrid``
    only applies to text queries.
    """

    query: str | None = Field(None, min_length=1, max_length=4000)
    embedding: list[float] | None = None
    k: int = Field(10, ge=1, le=100)
    hybrid: bool = False
    semantic_weight: float = Field(0.7, ge=0)
    keyword_weight: float = Field(0.3, ge=0)
    filter: dict[str, Any] | None = Field(None, description="Metadata equality filter")


class SearchResultModel(BaseModel):
    """A search hit."""

    document: DocumentModel
    score: float
    distance: float

    @classmethod
    def from_domain(cls, result: SearchResult) -> "SearchResultModel":
        return cls(
            document=DocumentModel.from_domain(result.document),
            score=result.score,
            distance=result.distance,
        )


class RagQueryRequest(BaseModel):
    """Request model for a RAG query."""

    question: str = Field(..., min_length=1, max_length=4000)
    collection_name: str = Field(..., min_length=1)
    top_k: int = Field(5, ge=1, le=50)
    min_score: float | None = None
    reranking: bool = False
    max_context_length: int = Field(4000, ge=100)
    query_expansion: bool = False
    include_metadata: bool = False
    filter: dict[str, Any] | None = Field(None, description="Metadata equality filter")
    messages: list[ChatMessageModel] = Field(
        default_factory=list,
        description="Chat history for context",
    )


class CitationModel(BaseModel):
    """A cited fragment of a source document."""

    content: str
    source: str
    relevance: float = Field(..., ge=0, le=1)

    @classmethod
    def from_domain(cls, citation: Citation) -> "CitationModel":
        return cls(content=citation.content, source=citation.source, relevance=citation.relevance)


class RagContextModel(BaseModel):
    """Sources retrieved for the question."""

    sources: list[SearchResultModel]
    query: str
    enhanced_query: str | None = None


class RagResponseModel(BaseModel):
    """Response model for a RAG query."""

    answer: str
    context: RagContextModel
    citations: list[CitationModel]
    confidence: float = Field(..., ge=0, le=1)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    collections: int = Field(..., ge=0, description="Number of collections loaded")


class ErrorDetail(BaseModel):
    """Structured error detail information."""

    type: str = Field(..., description="Exception type name")
    code: str = Field(..., description="Error code (e.g., SR_VEC_002)")
    message: str = Field(..., description="Human-readable error message")


class ErrorLocation(BaseModel):
    """Source location where error occurred."""

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(..., alias="class", description="Class name or <module>")
    method: str = Field(..., description="Method/function name")
    file: str = Field(..., description="Source file name")
    line: int = Field(..., description="Line number")


class ErrorResponse(BaseModel):
    """Response model for structured errors."""

    error: ErrorDetail
    location: ErrorLocation | None = None
    context: dict | None = None
    cause: dict | None = None
    stack_trace: list[str] | None = None
