"""FastAPI surface over the vector store and RAG services."""
