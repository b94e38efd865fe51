"""Embedding provider adapters."""

from .gemini_embedding import GeminiEmbeddingAdapter
from .local_embedding import SentenceTransformerEmbeddingAdapter

__all__ = ["GeminiEmbeddingAdapter", "SentenceTransformerEmbeddingAdapter"]
