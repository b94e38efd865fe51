"""Domain models for the semantic retrieval engine.

- document: Collection, Document, SearchResult for the vector store
- rag: ChatMessage, RAGConfig, RAGContext, Citation, RAGResponse, StreamEvent
- chunk: TextChunk produced by the text splitters

All models are re-exported here:

    from semantic_rag.core.domain import Document, SearchResult
"""

from .chunk import TextChunk
from .document import Collection, Document, DocumentFilter, SearchResult
from .rag import (
    ChatMessage,
    Citation,
    RAGConfig,
    RAGContext,
    RAGResponse,
    StreamEvent,
    StreamEventType,
)

__all__ = [
    # Vector store models
    "Collection",
    "Document",
    "DocumentFilter",
    "SearchResult",
    # RAG models
    "ChatMessage",
    "Citation",
    "RAGConfig",
    "RAGContext",
    "RAGResponse",
    "StreamEvent",
    "StreamEventType",
    # Chunking
    "TextChunk",
]
