"""Core services: vector store, reranking, RAG pipeline and indexing."""

from .citations import calculate_confidence, extract_citations
from .context_builder import build_context
from .indexing_service import IndexingService
from .rag_service import RagService
from .reranker import LLMReranker
from .vector_store import VectorStoreService

__all__ = [
    "IndexingService",
    "LLMReranker",
    "RagService",
    "VectorStoreService",
    "build_context",
    "calculate_confidence",
    "extract_citations",
]
