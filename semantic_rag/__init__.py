"""In-process semantic retrieval engine with HNSW indexing and RAG orchestration."""

__version__ = "0.1.0"
