"""Port interfaces between the core services and their adapters."""

from .embedding_port import EmbeddingPort
from .llm_port import LLMPort
from .vector_store_port import VectorStorePort

__all__ = ["EmbeddingPort", "LLMPort", "VectorStorePort"]
